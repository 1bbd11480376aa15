"""Fetch controllers: full and incremental fetches plus manual updates."""

import asyncio
from typing import Any, Optional, Sequence

from notifsync.client.base import NotificationApi
from notifsync.core.cursor import select_cursor
from notifsync.core.events import (
    Emit,
    FullSetFetchFailed,
    FullSetReceived,
    IncrementalSetFetchFailed,
    IncrementalSetReceived,
    NotificationsMerged,
    QueueSubmissionFailed,
)
from notifsync.core.state import NotificationState, get_notifications, get_username
from notifsync.utils.constants import Direction, QueueName
from notifsync.utils.debug import debug_fetch


class FetchController:
    """Issues fetches against the service and publishes the results.

    ``request_fetch_all`` and ``request_fetch_some`` are the triggered entry
    points. A new request of one kind cancels the in-flight request of the
    same kind, and each request carries a generation number so a response
    that arrives after being superseded is dropped instead of emitted.
    """

    FULL = "full"
    SOME = "some"

    def __init__(
        self, api: NotificationApi, state: NotificationState, emit: Emit
    ) -> None:
        self.api = api
        self.state = state
        self.emit = emit
        self._generation: dict[str, int] = {self.FULL: 0, self.SOME: 0}
        self._tasks: dict[str, Optional[asyncio.Task]] = {
            self.FULL: None,
            self.SOME: None,
        }

    def _next_generation(self, kind: str) -> int:
        self._generation[kind] += 1
        return self._generation[kind]

    def _is_current(self, kind: str, generation: Optional[int]) -> bool:
        return generation is None or self._generation[kind] == generation

    def _replace_task(self, kind: str, coro) -> asyncio.Task:
        previous = self._tasks[kind]
        if previous is not None and not previous.done():
            debug_fetch("Superseding in-flight fetch", kind=kind)
            previous.cancel()
        task = asyncio.create_task(coro)
        self._tasks[kind] = task
        return task

    # Triggered entry points

    def request_fetch_all(self) -> asyncio.Task:
        """Start a full fetch, abandoning any older one still in flight."""
        generation = self._next_generation(self.FULL)
        return self._replace_task(self.FULL, self.fetch_all(generation=generation))

    def request_fetch_some(
        self,
        types: Optional[Sequence[str]] = None,
        direction: str = Direction.AFTER,
    ) -> asyncio.Task:
        """Start an incremental fetch, abandoning any older one still in flight."""
        generation = self._next_generation(self.SOME)
        return self._replace_task(
            self.SOME,
            self.fetch_some(types=types, direction=direction, generation=generation),
        )

    async def cancel_pending(self) -> None:
        """Cancel in-flight fetches and wait for them to unwind."""
        tasks = [t for t in self._tasks.values() if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # Fetches

    async def fetch_all(self, generation: Optional[int] = None) -> None:
        """Fetch the whole set; the result replaces the store."""
        username = get_username(self.state)
        result = await self.api.fetch_all(username)

        if not self._is_current(self.FULL, generation):
            debug_fetch("Dropping stale full fetch", generation=generation)
            return

        if result.error:
            debug_fetch("Full fetch failed", error=result.error)
            self.emit(FullSetFetchFailed(result.error))
        else:
            self.emit(FullSetReceived(result.payload))

    async def fetch_some(
        self,
        types: Optional[Sequence[str]] = None,
        direction: str = Direction.AFTER,
        generation: Optional[int] = None,
    ) -> None:
        """Fetch notifications before or after what is already known.

        Args:
            types: Only these notify types; when given the cursor is also
                derived from notifications of these types only
            direction: ``before`` pages back by ``created``, ``after`` pages
                forward by ``updated``
        """
        username = get_username(self.state)
        known = get_notifications(self.state)
        if types:
            known = [n for n in known if n.notify_type in types]

        cursor = select_cursor(direction, known)
        bounds: dict[str, Any] = {}
        if cursor:
            bounds[direction] = cursor

        debug_fetch("Fetching some", direction=direction, cursor=cursor, types=types)
        result = await self.api.fetch_some(username, types=types, **bounds)

        if not self._is_current(self.SOME, generation):
            debug_fetch("Dropping stale incremental fetch", generation=generation)
            return

        if result.error:
            debug_fetch("Incremental fetch failed", error=result.error)
            self.emit(IncrementalSetFetchFailed(result.error))
        else:
            self.emit(IncrementalSetReceived(result.payload))

    # Manual updates

    async def update_one(self, notification_id: str, updates: dict) -> None:
        """Submit a single notification change right away."""
        await self.update_some([notification_id], updates)

    async def update_some(self, ids: Sequence[str], updates: dict) -> None:
        """Submit a change for several notifications right away.

        Only marking as read is sent; other changes go through the pending
        queues.
        """
        if updates.get("read") is not True:
            debug_fetch("Ignoring manual update", updates=updates)
            return

        ids = list(ids)
        result = await self.api.mark_as_read(ids)
        if result.error:
            self.emit(
                QueueSubmissionFailed(
                    queue=QueueName.READ, ids=tuple(ids), message=result.error
                )
            )
            return
        self.emit(NotificationsMerged(result.payload))
