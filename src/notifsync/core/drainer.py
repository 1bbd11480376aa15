"""Queue drainer: submit one pending-update queue to the service."""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from notifsync.client.base import ApiResult
from notifsync.core.events import (
    Emit,
    NotificationsMerged,
    QueueSubmissionFailed,
    QueueSubmissionSucceeded,
)
from notifsync.core.models import Transition
from notifsync.core.state import NotificationState
from notifsync.utils.debug import debug_queue


class DrainOutcome(Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class QueueSpec:
    """Everything needed to drain one queue.

    Attributes:
        name: Queue name ("read", "unread" or "shown")
        accessor: Reads the queue's pending ids from state
        submit: Remote call taking the ids in order
        transition: Local change the service confirms on success
    """

    name: str
    accessor: Callable[[NotificationState], Sequence[str]]
    submit: Callable[[list[str]], Awaitable[ApiResult]]
    transition: Transition


async def drain_queue(
    spec: QueueSpec,
    state: NotificationState,
    emit: Emit,
    ids: Optional[Sequence[str]] = None,
) -> DrainOutcome:
    """Submit the queue's current snapshot once.

    Ids queued while the submission is in flight are not part of the
    snapshot and stay pending for the next cycle. Clearing submitted ids is
    left to whoever consumes the emitted events.

    Pass ``ids`` to submit a snapshot the caller already took.
    """
    ids = list(spec.accessor(state) if ids is None else ids)
    if not ids:
        return DrainOutcome.SKIPPED

    debug_queue("Submitting queue", queue=spec.name, count=len(ids))
    result = await spec.submit(ids)

    if result.error:
        debug_queue("Queue submission failed", queue=spec.name, error=result.error)
        emit(QueueSubmissionFailed(queue=spec.name, ids=tuple(ids), message=result.error))
        return DrainOutcome.FAILED

    emit(
        QueueSubmissionSucceeded(
            queue=spec.name, ids=tuple(ids), transition=spec.transition
        )
    )
    emit(NotificationsMerged(payload=result.payload))
    return DrainOutcome.SUCCEEDED
