"""Tests for a single poll cycle."""

import asyncio

import pytest

from notifsync.core.clock import Clock
from notifsync.core.events import FetchRequested, PollCancelled
from notifsync.core.poll import PollOutcome, poll_cycle
from tests.helpers.fake_api import EventRecorder, ManualClock


@pytest.mark.asyncio
async def test_elapsed_wait_requests_after_fetch():
    clock = ManualClock()
    emit = EventRecorder()

    task = asyncio.create_task(poll_cycle(clock, emit, interval_ms=250))
    await clock.waiting.wait()
    assert emit.events == []

    clock.elapse()
    outcome = await asyncio.wait_for(task, timeout=1)

    assert outcome == PollOutcome.requested_after()
    assert clock.waits == [250]
    assert emit.events == [FetchRequested(direction="after")]


@pytest.mark.asyncio
async def test_cancel_during_wait_emits_poll_cancelled():
    clock = ManualClock()
    emit = EventRecorder()

    task = asyncio.create_task(poll_cycle(clock, emit))
    await clock.waiting.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert emit.events == [PollCancelled("poll cancelled")]


@pytest.mark.asyncio
async def test_failing_clock_counts_as_cancelled():
    class BrokenClock(Clock):
        async def wait(self, duration_ms: int) -> bool:
            raise RuntimeError("timer gone")

    emit = EventRecorder()

    outcome = await poll_cycle(BrokenClock(), emit)

    assert outcome == PollOutcome.cancelled()
    assert emit.events == [PollCancelled("poll cancelled")]


@pytest.mark.asyncio
async def test_real_clock_waits_milliseconds():
    emit = EventRecorder()

    outcome = await poll_cycle(Clock(), emit, interval_ms=1)

    assert outcome.requested
    assert len(emit.of_type(FetchRequested)) == 1
