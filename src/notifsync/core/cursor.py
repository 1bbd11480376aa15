"""Cursor selection for incremental fetches."""

from typing import Optional, Sequence

from notifsync.core.models import Notification
from notifsync.utils.constants import Direction


def select_cursor(
    direction: str, notifications: Sequence[Notification]
) -> Optional[str]:
    """Derive the timestamp bounding the next fetch.

    The notifications are reverse-sorted by ``created``, so for ``before`` the
    last one is the oldest and its ``created`` pages backward. For ``after``
    the newest ``updated`` pages forward over anything changed since.

    Args:
        direction: ``"before"`` or ``"after"``
        notifications: Known notifications, newest-created first

    Returns:
        The cursor timestamp, or None when there is nothing to bound by
    """
    if direction not in Direction.ALL:
        raise ValueError(f"Unknown direction: {direction!r}")

    if len(notifications) < 1:
        return None

    if direction == Direction.BEFORE:
        return notifications[-1].created

    return max(n.updated for n in notifications)
