"""Fake notification service and controllable clock for testing.

Provides in-memory implementations of the NotificationApi interface and of
Clock, so tests can drive full sync cycles without network calls or real
waiting.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from notifsync.client.base import ApiResult, NotificationApi
from notifsync.core.clock import Clock


@dataclass
class RecordedCall:
    """Record of one API call."""

    method: str
    args: tuple
    kwargs: dict = field(default_factory=dict)


class FakeNotificationApi(NotificationApi):
    """In-memory NotificationApi.

    Each method returns the ApiResult queued for it (or an empty success)
    and records the call. Set ``gates[method]`` to an ``asyncio.Event`` to
    hold a call in flight until the test releases it.
    """

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self.results: dict[str, list[ApiResult]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.closed = False

    def queue_result(self, method: str, result: ApiResult) -> None:
        self.results.setdefault(method, []).append(result)

    def calls_to(self, method: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == method]

    async def _call(self, method: str, *args, **kwargs) -> ApiResult:
        self.calls.append(RecordedCall(method, args, kwargs))
        gate = self.gates.get(method)
        if gate is not None:
            await gate.wait()
        queued = self.results.get(method)
        if queued:
            return queued.pop(0)
        return ApiResult.success([])

    async def fetch_all(self, username: str) -> ApiResult:
        return await self._call("fetch_all", username)

    async def fetch_some(
        self,
        username: str,
        types: Optional[Sequence[str]] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> ApiResult:
        kwargs: dict[str, Any] = {"types": types}
        if before is not None:
            kwargs["before"] = before
        if after is not None:
            kwargs["after"] = after
        return await self._call("fetch_some", username, **kwargs)

    async def mark_as_read(self, ids: Sequence[str]) -> ApiResult:
        return await self._call("mark_as_read", list(ids))

    async def mark_as_unread(self, ids: Sequence[str]) -> ApiResult:
        return await self._call("mark_as_unread", list(ids))

    async def mark_as_shown(self, ids: Sequence[str]) -> ApiResult:
        return await self._call("mark_as_shown", list(ids))

    async def close(self) -> None:
        self.closed = True


class ManualClock(Clock):
    """Clock whose waits finish only when the test calls ``elapse``."""

    def __init__(self) -> None:
        self.waits: list[int] = []
        self._elapsed = asyncio.Event()
        self.waiting = asyncio.Event()

    async def wait(self, duration_ms: int) -> bool:
        self.waits.append(duration_ms)
        self.waiting.set()
        try:
            await self._elapsed.wait()
        finally:
            self.waiting.clear()
        self._elapsed.clear()
        return True

    def elapse(self) -> None:
        self._elapsed.set()


class EventRecorder:
    """Emit callable that keeps every event in order."""

    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]


async def wait_until(predicate, limit: int = 200) -> None:
    """Yield to the loop until ``predicate()`` holds."""
    for _ in range(limit):
        if predicate():
            return
        await asyncio.sleep(0.005)
    raise AssertionError("condition not reached")
