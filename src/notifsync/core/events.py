"""Events emitted by the sync core and the bus that carries them.

Outcome events (``FullSetReceived``, ``QueueSubmissionSucceeded``, ...) are
produced by the fetch controller, the queue drainer and the poll cycle.
Trigger signals (``FetchRequested``, ``FullFetchRequested``,
``UserLoggedOut``) come from the poll cycle or from outside and drive the
controllers.

The bus is synchronous on the emit side: listeners (the state reducer first)
run inside ``emit`` so state is already updated when an awaiting
subscriber wakes up.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

from notifsync.core.models import Transition
from notifsync.utils.constants import POLL_CANCELLED_MSG, Direction
from notifsync.utils.debug import debug_event, log_error


class Event:
    """Marker base class for bus events."""


@dataclass(frozen=True)
class FullSetReceived(Event):
    payload: Any


@dataclass(frozen=True)
class FullSetFetchFailed(Event):
    message: str


@dataclass(frozen=True)
class IncrementalSetReceived(Event):
    payload: Any


@dataclass(frozen=True)
class IncrementalSetFetchFailed(Event):
    message: str


@dataclass(frozen=True)
class QueueSubmissionSucceeded(Event):
    """A queue batch was accepted; carries the ids that were sent."""

    queue: str
    ids: tuple[str, ...]
    transition: Transition


@dataclass(frozen=True)
class QueueSubmissionFailed(Event):
    queue: str
    ids: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class NotificationsMerged(Event):
    payload: Any


@dataclass(frozen=True)
class PollCancelled(Event):
    message: str = POLL_CANCELLED_MSG


@dataclass(frozen=True)
class FetchRequested(Event):
    """Request for an incremental fetch."""

    direction: str = Direction.AFTER
    types: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class FullFetchRequested(Event):
    pass


@dataclass(frozen=True)
class UserLoggedOut(Event):
    pass


Emit = Callable[[Event], None]
Listener = Callable[[Event], None]


class Subscription:
    """Buffered stream of events of the selected types."""

    def __init__(self, bus: "EventBus", types: tuple[type, ...]) -> None:
        self._bus = bus
        self.types = types
        self._queue: asyncio.Queue = asyncio.Queue()

    def matches(self, event: Event) -> bool:
        return not self.types or isinstance(event, self.types)

    def _put(self, event: Event) -> None:
        self._queue.put_nowait(event)

    async def get(self) -> Event:
        """Wait for the next matching event."""
        return await self._queue.get()

    def get_nowait(self) -> Optional[Event]:
        """Return a buffered event, or None if nothing is pending."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._bus._unsubscribe(self)


class EventBus:
    """Fan-out of events to listeners and subscriptions.

    Example:
        bus = EventBus()
        bus.add_listener(state.apply)
        sub = bus.subscribe(FullSetReceived, IncrementalSetReceived)
        bus.emit(FullSetReceived(payload=[...]))
        event = await sub.get()
    """

    def __init__(self, record_history: bool = False, history_size: int = 200) -> None:
        self._listeners: list[Listener] = []
        self._subscriptions: list[Subscription] = []
        self.history: Optional[deque] = (
            deque(maxlen=history_size) if record_history else None
        )

    def add_listener(self, listener: Listener) -> None:
        """Register a synchronous callback run on every emit."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def subscribe(self, *types: type) -> Subscription:
        """Subscribe to events of the given types (all events if none given)."""
        subscription = Subscription(self, types)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def emit(self, event: Event) -> None:
        """Deliver an event to every listener, then every matching subscription."""
        debug_event("Emit", event=type(event).__name__)
        if self.history is not None:
            self.history.append(event)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                log_error(
                    "event",
                    f"Listener failed on {type(event).__name__}",
                    e,
                )

        for subscription in list(self._subscriptions):
            if subscription.matches(event):
                subscription._put(event)

    __call__ = emit
