"""Base notification API interface.

The sync core never talks HTTP itself. It calls a ``NotificationApi`` whose
methods always return an ``ApiResult``: either a payload of notification
records or an error message. Transport failures are folded into the error
branch, so callers only have to branch on ``result.error``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class ApiResult:
    """Outcome of one remote call."""

    payload: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, payload: Any) -> "ApiResult":
        return cls(payload=payload)

    @classmethod
    def failure(cls, error: str) -> "ApiResult":
        return cls(error=error or "unknown error")


class NotificationApi(ABC):
    """Abstract base class for notification service clients."""

    @abstractmethod
    async def fetch_all(self, username: str) -> ApiResult:
        """Fetch the complete notification set for a user."""
        pass

    @abstractmethod
    async def fetch_some(
        self,
        username: str,
        types: Optional[Sequence[str]] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> ApiResult:
        """Fetch notifications bounded by a cursor.

        Args:
            username: User to fetch for
            types: Only these notify types; all types if None
            before: Only notifications created before this timestamp
            after: Only notifications updated after this timestamp
        """
        pass

    @abstractmethod
    async def mark_as_read(self, ids: Sequence[str]) -> ApiResult:
        pass

    @abstractmethod
    async def mark_as_unread(self, ids: Sequence[str]) -> ApiResult:
        pass

    @abstractmethod
    async def mark_as_shown(self, ids: Sequence[str]) -> ApiResult:
        pass

    async def close(self) -> None:
        """Clean up resources (optional)."""
        pass
