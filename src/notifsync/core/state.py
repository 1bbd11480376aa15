"""Notification store and pending-update queues.

``NotificationState`` is owned by the caller of the supervisor. The core
reads it through the accessor functions below and changes it only through
events passed to ``apply``.
"""

from typing import Iterable, Optional

from notifsync.core.events import (
    Event,
    FullSetReceived,
    IncrementalSetReceived,
    NotificationsMerged,
    QueueSubmissionFailed,
    QueueSubmissionSucceeded,
    UserLoggedOut,
)
from notifsync.core.models import Notification, coerce_notifications
from notifsync.utils.constants import QueueName
from notifsync.utils.debug import debug_queue


class NotificationState:
    """In-memory notification store plus the three pending queues."""

    def __init__(self, username: Optional[str] = None) -> None:
        self.username = username
        self.by_id: dict[str, Notification] = {}
        # dicts used as insertion-ordered sets
        self._pending: dict[str, dict[str, None]] = {
            name: {} for name in QueueName.ALL
        }
        self.logged_out = False
        self.last_error: Optional[str] = None

    # Accessors

    def notifications(self) -> list[Notification]:
        """Notifications, newest-created first."""
        return list(self.by_id.values())

    def pending(self, queue: str) -> list[str]:
        return list(self._pending[queue])

    def pending_counts(self) -> dict[str, int]:
        return {name: len(ids) for name, ids in self._pending.items()}

    # User actions

    def queue_read(self, ids: Iterable[str]) -> None:
        """Queue ids to be marked read (cancels a pending unread)."""
        self._enqueue(QueueName.READ, ids, cancels=QueueName.UNREAD)

    def queue_unread(self, ids: Iterable[str]) -> None:
        """Queue ids to be marked unread (cancels a pending read)."""
        self._enqueue(QueueName.UNREAD, ids, cancels=QueueName.READ)

    def queue_shown(self, ids: Iterable[str]) -> None:
        self._enqueue(QueueName.SHOWN, ids)

    def load_pending(self, queue: str, ids: Iterable[str]) -> None:
        """Replace a queue with persisted ids, keeping their order."""
        self._pending[queue] = dict.fromkeys(ids)

    def _enqueue(
        self, queue: str, ids: Iterable[str], cancels: Optional[str] = None
    ) -> None:
        for notification_id in ids:
            self._pending[queue][notification_id] = None
            if cancels:
                self._pending[cancels].pop(notification_id, None)

    # Reducer

    def apply(self, event: Event) -> None:
        """Fold an emitted event into the state."""
        if isinstance(event, FullSetReceived):
            notifications = coerce_notifications(event.payload)
            if notifications is None:
                debug_queue("Ignoring full set with unknown shape")
                return
            self.by_id = {}
            self._merge(notifications)

        elif isinstance(event, (IncrementalSetReceived, NotificationsMerged)):
            notifications = coerce_notifications(event.payload)
            if notifications is None:
                debug_queue("Ignoring merge with unknown shape")
                return
            self._merge(notifications)

        elif isinstance(event, QueueSubmissionSucceeded):
            queue = self._pending[event.queue]
            # Only the submitted snapshot leaves the queue
            for notification_id in event.ids:
                queue.pop(notification_id, None)
                current = self.by_id.get(notification_id)
                if current is not None:
                    self.by_id[notification_id] = current.with_transition(
                        event.transition
                    )
            debug_queue(
                "Cleared submitted ids",
                queue=event.queue,
                cleared=len(event.ids),
                remaining=len(queue),
            )

        elif isinstance(event, QueueSubmissionFailed):
            # Kept for the next cycle
            self.last_error = event.message

        elif isinstance(event, UserLoggedOut):
            self.logged_out = True

    def _merge(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            self.by_id[notification.id] = notification
        self.by_id = dict(
            sorted(self.by_id.items(), key=lambda item: item[1].created, reverse=True)
        )


def get_username(state: NotificationState) -> Optional[str]:
    return state.username


def get_notifications(state: NotificationState) -> list[Notification]:
    return state.notifications()


def get_ids_read_pending(state: NotificationState) -> list[str]:
    return state.pending(QueueName.READ)


def get_ids_unread_pending(state: NotificationState) -> list[str]:
    return state.pending(QueueName.UNREAD)


def get_ids_shown_pending(state: NotificationState) -> list[str]:
    return state.pending(QueueName.SHOWN)
