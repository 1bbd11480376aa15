"""Runs the three queue drains for each poll trigger."""

import asyncio
from typing import Optional

from notifsync.client.base import NotificationApi
from notifsync.core.drainer import DrainOutcome, QueueSpec, drain_queue
from notifsync.core.events import Emit, QueueSubmissionFailed
from notifsync.core.models import Transition
from notifsync.core.state import (
    NotificationState,
    get_ids_read_pending,
    get_ids_shown_pending,
    get_ids_unread_pending,
)
from notifsync.utils.constants import QueueName
from notifsync.utils.debug import debug_queue, log_error


def default_queue_specs(api: NotificationApi) -> list[QueueSpec]:
    """Read, unread and shown queues wired to the matching API calls."""
    return [
        QueueSpec(
            name=QueueName.READ,
            accessor=get_ids_read_pending,
            submit=api.mark_as_read,
            transition=Transition(read=True),
        ),
        QueueSpec(
            name=QueueName.UNREAD,
            accessor=get_ids_unread_pending,
            submit=api.mark_as_unread,
            transition=Transition(read=False),
        ),
        QueueSpec(
            name=QueueName.SHOWN,
            accessor=get_ids_shown_pending,
            submit=api.mark_as_shown,
            transition=Transition(shown=True),
        ),
    ]


class UpdateDispatcher:
    """Drains every pending queue concurrently.

    Each queue is its own unit of failure: an error response or an
    unexpected exception in one drain never cancels the others.
    """

    def __init__(
        self,
        api: NotificationApi,
        state: NotificationState,
        emit: Emit,
        specs: Optional[list[QueueSpec]] = None,
    ) -> None:
        self.state = state
        self.emit = emit
        self.specs = specs if specs is not None else default_queue_specs(api)

    async def dispatch(self) -> dict[str, DrainOutcome]:
        """Run all drains and wait for every one of them."""
        snapshots = [tuple(spec.accessor(self.state)) for spec in self.specs]
        results = await asyncio.gather(
            *(
                drain_queue(spec, self.state, self.emit, ids)
                for spec, ids in zip(self.specs, snapshots)
            ),
            return_exceptions=True,
        )

        outcomes: dict[str, DrainOutcome] = {}
        for spec, ids, result in zip(self.specs, snapshots, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                log_error("queue", f"Drain of {spec.name} queue crashed", result)
                self.emit(
                    QueueSubmissionFailed(
                        queue=spec.name,
                        ids=ids,
                        message=str(result) or type(result).__name__,
                    )
                )
                outcomes[spec.name] = DrainOutcome.FAILED
            else:
                outcomes[spec.name] = result

        debug_queue(
            "Dispatch done",
            **{name: outcome.value for name, outcome in outcomes.items()},
        )
        return outcomes
