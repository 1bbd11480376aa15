"""Sync Manager - the core API."""

import asyncio
from pathlib import Path
from typing import Iterable, Optional, Sequence

from notifsync.client.base import NotificationApi
from notifsync.client.http import HttpNotificationApi
from notifsync.core.clock import Clock
from notifsync.core.dispatcher import UpdateDispatcher
from notifsync.core.events import (
    Event,
    EventBus,
    FetchRequested,
    FullFetchRequested,
    FullSetFetchFailed,
    IncrementalSetFetchFailed,
    PollCancelled,
    QueueSubmissionFailed,
    QueueSubmissionSucceeded,
    UserLoggedOut,
)
from notifsync.core.fetch import FetchController
from notifsync.core.state import NotificationState
from notifsync.core.storage import Storage
from notifsync.core.supervisor import PollSupervisor
from notifsync.utils.config import Config, get_notifsync_dir
from notifsync.utils.constants import Direction, QueueName
from notifsync.utils.debug import debug_poll, debug_queue, log_error
from notifsync.utils.exceptions import ConfigurationError


class SyncManager:
    """Main API for running notification sync for one user session.

    Owns the state container, the event bus and the loops. Pending queues
    live in storage: before every dispatch the manager records the outcomes
    of the last cycle and reloads the queues, so ids queued from the CLI
    while sync is running go out on the next cycle.
    """

    def __init__(
        self,
        notifsync_dir: Optional[Path] = None,
        config: Optional[Config] = None,
        api: Optional[NotificationApi] = None,
        clock: Optional[Clock] = None,
    ):
        self.notifsync_dir = notifsync_dir or get_notifsync_dir()
        self._config = config
        self._clock = clock

        self.api: Optional[NotificationApi] = api
        self.storage: Optional[Storage] = None
        self.state: Optional[NotificationState] = None
        self.bus: Optional[EventBus] = None
        self.fetcher: Optional[FetchController] = None
        self.supervisor: Optional[PollSupervisor] = None
        self.logged_out = asyncio.Event()
        self._outcomes = None
        self._initialized = False

    async def initialize(self):
        """Initialize storage and components."""
        if self._initialized:
            return

        try:
            self.notifsync_dir.mkdir(parents=True, exist_ok=True)

            if not self._config:
                self._config = Config(self.notifsync_dir)
            config = self._config

            if not config.username:
                raise ConfigurationError("No username configured")
            if self.api is None:
                if not config.api_base_url:
                    raise ConfigurationError("No API base URL configured")
                self.api = HttpNotificationApi(
                    base_url=config.api_base_url,
                    token=config.api_token,
                    timeout=config.http_timeout,
                    max_retries=config.max_retries,
                )

            self.storage = Storage(config.db_path)
            await self.storage.connect()

            self.state = NotificationState(username=config.username)
            await self._load_pending()

            self.bus = EventBus()
            self.bus.add_listener(self.state.apply)
            self.bus.add_listener(self._route_signal)
            self._outcomes = self.bus.subscribe(
                QueueSubmissionSucceeded,
                QueueSubmissionFailed,
                FullSetFetchFailed,
                IncrementalSetFetchFailed,
                PollCancelled,
            )

            self.fetcher = FetchController(self.api, self.state, self.bus.emit)
            dispatcher = UpdateDispatcher(self.api, self.state, self.bus.emit)
            self.supervisor = PollSupervisor(
                self.bus,
                dispatcher,
                self.logged_out,
                clock=self._clock,
                interval_ms=config.poll_interval_ms,
                before_cycle=self._sync_pending,
            )

            self._initialized = True
        except Exception:
            await self.close()
            raise

    async def start(self):
        """Start polling and request the first full set."""
        if not self._initialized:
            await self.initialize()

        self.supervisor.start()
        self.bus.emit(FullFetchRequested())

    def _route_signal(self, event: Event):
        """Turn trigger signals into controller calls."""
        if isinstance(event, FetchRequested):
            self.fetcher.request_fetch_some(
                types=event.types, direction=event.direction
            )
        elif isinstance(event, FullFetchRequested):
            self.fetcher.request_fetch_all()
        elif isinstance(event, UserLoggedOut):
            self.logged_out.set()

    async def _load_pending(self):
        for name in QueueName.ALL:
            self.state.load_pending(name, await self.storage.get_pending(name))
        debug_queue("Loaded pending queues", **self.state.pending_counts())

    async def _flush_outcomes(self):
        """Mirror buffered outcomes into storage and the audit log."""
        while (event := self._outcomes.get_nowait()) is not None:
            try:
                await self._record(event)
            except Exception as e:
                log_error("queue", f"Failed to record {type(event).__name__}", e)

    async def _sync_pending(self):
        """Record the last cycle, then take the queues from storage."""
        try:
            await self._flush_outcomes()
            await self._load_pending()
        except Exception as e:
            log_error("queue", "Failed to sync pending queues", e)

    async def _record(self, event: Event):
        if isinstance(event, QueueSubmissionSucceeded):
            await self.storage.remove_pending(event.queue, event.ids)
            await self.storage.log_audit(
                "submission_succeeded", event.queue, {"count": len(event.ids)}
            )
        elif isinstance(event, QueueSubmissionFailed):
            await self.storage.log_audit(
                "submission_failed",
                event.queue,
                {"count": len(event.ids), "error": event.message},
            )
        elif isinstance(event, (FullSetFetchFailed, IncrementalSetFetchFailed)):
            await self.storage.log_audit(
                "fetch_failed",
                details={"kind": type(event).__name__, "error": event.message},
            )
        elif isinstance(event, PollCancelled):
            await self.storage.log_audit("poll_cancelled", details={"msg": event.message})

    # User actions

    async def mark_read(self, ids: Iterable[str]):
        ids = list(ids)
        await self.storage.add_pending(QueueName.READ, ids)
        await self.storage.remove_pending(QueueName.UNREAD, ids)
        self.state.queue_read(ids)

    async def mark_unread(self, ids: Iterable[str]):
        ids = list(ids)
        await self.storage.add_pending(QueueName.UNREAD, ids)
        await self.storage.remove_pending(QueueName.READ, ids)
        self.state.queue_unread(ids)

    async def mark_shown(self, ids: Iterable[str]):
        ids = list(ids)
        await self.storage.add_pending(QueueName.SHOWN, ids)
        self.state.queue_shown(ids)

    async def update_one(self, notification_id: str, updates: dict):
        await self.fetcher.update_one(notification_id, updates)

    async def update_some(self, ids: Sequence[str], updates: dict):
        await self.fetcher.update_some(ids, updates)

    def request_fetch(
        self, types: Optional[Sequence[str]] = None, direction: str = Direction.AFTER
    ):
        """Ask for an incremental fetch outside the poll schedule."""
        self.bus.emit(
            FetchRequested(direction=direction, types=tuple(types) if types else None)
        )

    def logout(self):
        """Signal logout; the supervisor stops at its current wait."""
        self.bus.emit(UserLoggedOut())

    async def wait_closed(self):
        """Wait until the supervisor terminates."""
        if self.supervisor is not None:
            await self.supervisor.wait_closed()

    async def close(self):
        """Stop loops and close connections."""
        if self.supervisor is not None:
            await self.supervisor.stop()
        if self.fetcher is not None:
            await self.fetcher.cancel_pending()

        # Flush outcomes emitted while shutting down
        if self._outcomes is not None and self.storage is not None:
            await self._flush_outcomes()
            self._outcomes.close()
            self._outcomes = None

        if self.api is not None:
            await self.api.close()
        if self.storage:
            await self.storage.close()
            self.storage = None
        debug_poll("Sync manager closed")
        self._initialized = False
