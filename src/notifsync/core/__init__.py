"""Core modules for notifsync.

This package provides:
- PollSupervisor: The cancellable poll loop
- UpdateDispatcher / drain_queue: Pending-queue submission
- FetchController: Full and incremental fetches
- NotificationState: Store plus pending queues and their reducer
- Storage: SQLite persistence for pending queues
"""

from notifsync.core.dispatcher import UpdateDispatcher
from notifsync.core.drainer import DrainOutcome, QueueSpec, drain_queue
from notifsync.core.events import EventBus
from notifsync.core.fetch import FetchController
from notifsync.core.state import NotificationState
from notifsync.core.storage import Storage
from notifsync.core.supervisor import PollSupervisor, SupervisorState

__all__ = [
    "DrainOutcome",
    "EventBus",
    "FetchController",
    "NotificationState",
    "PollSupervisor",
    "QueueSpec",
    "Storage",
    "SupervisorState",
    "UpdateDispatcher",
    "drain_queue",
]
