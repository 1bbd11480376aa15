"""Notification records and queue transitions."""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class Notification:
    """A single feed notification.

    Timestamps are ISO-8601 strings as sent by the service, so they order
    lexically.
    """

    id: str
    notify_type: str
    created: str
    updated: str
    read: bool = False
    shown: bool = False
    data: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Notification":
        """Build a notification from a service record."""
        created = str(raw.get("created", ""))
        return cls(
            id=str(raw["id"]),
            notify_type=str(raw.get("notify_type", "")),
            created=created,
            updated=str(raw.get("updated") or created),
            read=bool(raw.get("read", False)),
            shown=bool(raw.get("shown", False)),
            data=dict(raw.get("data") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "notify_type": self.notify_type,
            "created": self.created,
            "updated": self.updated,
            "read": self.read,
            "shown": self.shown,
            "data": dict(self.data),
        }

    def with_transition(self, transition: "Transition") -> "Notification":
        """Return a copy with the transition's fields applied."""
        changes = transition.as_dict()
        if not changes:
            return self
        return replace(self, **changes)


@dataclass(frozen=True)
class Transition:
    """Local field change confirmed by a queue submission.

    Only the fields that are set take part, so ``Transition(shown=True)``
    leaves ``read`` untouched.
    """

    read: Optional[bool] = None
    shown: Optional[bool] = None

    def as_dict(self) -> dict[str, bool]:
        changes = {}
        if self.read is not None:
            changes["read"] = self.read
        if self.shown is not None:
            changes["shown"] = self.shown
        return changes


def coerce_notifications(payload: Any) -> Optional[list[Notification]]:
    """Turn a service payload into notifications.

    Accepts a list of ``Notification`` objects or raw dicts, or a dict with a
    ``notifications`` list. Returns None when the payload has another shape.
    """
    if isinstance(payload, dict):
        if "notifications" not in payload:
            return None
        payload = payload["notifications"]

    if not isinstance(payload, Iterable) or isinstance(payload, (str, bytes)):
        return None

    result = []
    for item in payload:
        if isinstance(item, Notification):
            result.append(item)
        elif isinstance(item, dict) and "id" in item:
            result.append(Notification.from_dict(item))
        else:
            return None
    return result
