"""One poll cycle: wait, then ask for an incremental fetch."""

import asyncio
from dataclasses import dataclass
from typing import Optional

from notifsync.core.clock import Clock
from notifsync.core.events import Emit, FetchRequested, PollCancelled
from notifsync.utils.constants import POLL_CANCELLED_MSG, POLL_WAIT_MS, Direction
from notifsync.utils.debug import debug_poll, log_error


@dataclass(frozen=True)
class PollOutcome:
    requested: bool
    direction: Optional[str] = None

    @classmethod
    def requested_after(cls) -> "PollOutcome":
        return cls(requested=True, direction=Direction.AFTER)

    @classmethod
    def cancelled(cls) -> "PollOutcome":
        return cls(requested=False)


async def poll_cycle(
    clock: Clock, emit: Emit, interval_ms: int = POLL_WAIT_MS
) -> PollOutcome:
    """Wait ``interval_ms`` and request an ``after`` fetch.

    If the task is cancelled during the wait, ``PollCancelled`` is emitted
    and the cancellation propagates. ``FetchRequested`` is only ever emitted
    after a completed wait.
    """
    try:
        await clock.wait(interval_ms)
    except asyncio.CancelledError:
        debug_poll("Poll wait cancelled")
        emit(PollCancelled(POLL_CANCELLED_MSG))
        raise
    except Exception as e:
        log_error("poll", "Poll wait failed", e)
        emit(PollCancelled(POLL_CANCELLED_MSG))
        return PollOutcome.cancelled()

    debug_poll("Poll wait elapsed, requesting fetch", interval_ms=interval_ms)
    emit(FetchRequested(direction=Direction.AFTER))
    return PollOutcome.requested_after()
