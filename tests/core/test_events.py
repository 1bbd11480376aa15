"""Tests for the event bus."""

import asyncio

import pytest

from notifsync.core.events import (
    EventBus,
    FullSetReceived,
    IncrementalSetReceived,
    PollCancelled,
    UserLoggedOut,
)


@pytest.mark.asyncio
async def test_subscription_receives_matching_events_only():
    bus = EventBus()
    sub = bus.subscribe(FullSetReceived, IncrementalSetReceived)

    bus.emit(UserLoggedOut())
    bus.emit(IncrementalSetReceived(payload=[]))

    event = await asyncio.wait_for(sub.get(), timeout=1)
    assert isinstance(event, IncrementalSetReceived)
    assert sub.pending() == 0


@pytest.mark.asyncio
async def test_listeners_run_before_subscribers_wake():
    """State is updated by the time an awaiting subscriber sees the event."""
    bus = EventBus()
    seen = []
    bus.add_listener(seen.append)
    sub = bus.subscribe()

    bus.emit(PollCancelled())

    event = await sub.get()
    assert seen == [event]


def test_failing_listener_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("listener bug")

    bus.add_listener(broken)
    bus.add_listener(seen.append)

    bus.emit(UserLoggedOut())

    assert len(seen) == 1


def test_closed_subscription_stops_receiving():
    bus = EventBus()
    sub = bus.subscribe()
    sub.close()

    bus.emit(UserLoggedOut())

    assert sub.get_nowait() is None


def test_history_is_bounded():
    bus = EventBus(record_history=True, history_size=2)
    for _ in range(5):
        bus.emit(PollCancelled())
    assert len(bus.history) == 2
