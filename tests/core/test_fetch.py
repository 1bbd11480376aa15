"""Tests for the fetch controllers."""

import asyncio

import pytest

from notifsync.client.base import ApiResult
from notifsync.core.events import (
    FullSetFetchFailed,
    FullSetReceived,
    IncrementalSetFetchFailed,
    IncrementalSetReceived,
    NotificationsMerged,
    QueueSubmissionFailed,
)
from notifsync.core.fetch import FetchController
from notifsync.core.state import NotificationState
from tests.helpers.fake_api import EventRecorder, FakeNotificationApi


@pytest.fixture
def api():
    return FakeNotificationApi()


@pytest.fixture
def state(sample_notifications):
    state = NotificationState("basil")
    state.apply(FullSetReceived(sample_notifications))
    return state


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_payload_passes_through(self, api):
        api.queue_result("fetch_all", ApiResult.success({"data": "x"}))
        emit = EventRecorder()

        await FetchController(api, NotificationState("basil"), emit).fetch_all()

        assert api.calls_to("fetch_all")[0].args == ("basil",)
        assert emit.events == [FullSetReceived({"data": "x"})]

    @pytest.mark.asyncio
    async def test_error_emits_failure(self, api):
        api.queue_result("fetch_all", ApiResult.failure("unauthorized"))
        emit = EventRecorder()

        await FetchController(api, NotificationState("basil"), emit).fetch_all()

        assert emit.events == [FullSetFetchFailed("unauthorized")]


class TestFetchSome:
    @pytest.mark.asyncio
    async def test_empty_store_sends_no_cursor(self, api):
        emit = EventRecorder()

        await FetchController(api, NotificationState("basil"), emit).fetch_some()

        call = api.calls_to("fetch_some")[0]
        assert call.args == ("basil",)
        assert call.kwargs == {"types": None}
        assert emit.events == [IncrementalSetReceived([])]

    @pytest.mark.asyncio
    async def test_after_uses_latest_updated(self, api, state):
        await FetchController(api, state, EventRecorder()).fetch_some(direction="after")

        call = api.calls_to("fetch_some")[0]
        assert call.kwargs == {"types": None, "after": "2024-03-05T00:00:00"}

    @pytest.mark.asyncio
    async def test_before_uses_oldest_created_of_types(self, api, state):
        controller = FetchController(api, state, EventRecorder())

        await controller.fetch_some(types=["vote"], direction="before")

        call = api.calls_to("fetch_some")[0]
        assert call.kwargs == {"types": ["vote"], "before": "2024-03-03T00:00:00"}

    @pytest.mark.asyncio
    async def test_types_without_matches_send_no_cursor(self, api, state):
        await FetchController(api, state, EventRecorder()).fetch_some(types=["mention"])

        assert api.calls_to("fetch_some")[0].kwargs == {"types": ["mention"]}

    @pytest.mark.asyncio
    async def test_error_emits_failure(self, api, state):
        api.queue_result("fetch_some", ApiResult.failure("timeout"))
        emit = EventRecorder()

        await FetchController(api, state, emit).fetch_some()

        assert emit.events == [IncrementalSetFetchFailed("timeout")]

    @pytest.mark.asyncio
    async def test_unknown_direction_raises(self, api, state):
        with pytest.raises(ValueError):
            await FetchController(api, state, EventRecorder()).fetch_some(
                direction="sideways"
            )
        assert api.calls == []


class TestLatestWins:
    @pytest.mark.asyncio
    async def test_new_request_supersedes_in_flight(self, api, state):
        gate = asyncio.Event()
        api.gates["fetch_some"] = gate
        emit = EventRecorder()
        controller = FetchController(api, state, emit)

        first = controller.request_fetch_some()
        await asyncio.sleep(0)
        second = controller.request_fetch_some()
        await asyncio.sleep(0)
        gate.set()
        await asyncio.wait_for(second, timeout=1)

        assert first.cancelled()
        assert len(api.calls_to("fetch_some")) == 2
        assert len(emit.of_type(IncrementalSetReceived)) == 1

    @pytest.mark.asyncio
    async def test_stale_response_is_dropped(self, api, state):
        """A response that arrives after a newer request started is not emitted."""
        gate = asyncio.Event()
        api.gates["fetch_all"] = gate
        api.queue_result("fetch_all", ApiResult.success({"batch": "old"}))
        api.queue_result("fetch_all", ApiResult.success({"batch": "new"}))
        emit = EventRecorder()
        controller = FetchController(api, state, emit)

        stale = asyncio.create_task(controller.fetch_all(generation=1))
        controller.request_fetch_all()
        await asyncio.sleep(0)
        newer = controller.request_fetch_all()
        await asyncio.sleep(0)
        gate.set()
        await asyncio.wait_for(asyncio.gather(stale, newer), timeout=1)

        assert emit.events == [FullSetReceived({"batch": "new"})]

    @pytest.mark.asyncio
    async def test_cancel_pending(self, api, state):
        api.gates["fetch_all"] = asyncio.Event()
        emit = EventRecorder()
        controller = FetchController(api, state, emit)

        task = controller.request_fetch_all()
        await asyncio.sleep(0)
        await controller.cancel_pending()

        assert task.cancelled()
        assert emit.events == []


class TestManualUpdates:
    @pytest.mark.asyncio
    async def test_update_one_marks_read(self, api, state):
        payload = [{"id": "n1", "created": "2024-03-01T00:00:00", "read": True}]
        api.queue_result("mark_as_read", ApiResult.success(payload))
        emit = EventRecorder()

        await FetchController(api, state, emit).update_one("n1", {"read": True})

        assert api.calls_to("mark_as_read")[0].args == (["n1"],)
        assert emit.events == [NotificationsMerged(payload)]

    @pytest.mark.asyncio
    async def test_update_some_error(self, api, state):
        api.queue_result("mark_as_read", ApiResult.failure("nope"))
        emit = EventRecorder()

        await FetchController(api, state, emit).update_some(["n1", "n2"], {"read": True})

        assert emit.events == [
            QueueSubmissionFailed(queue="read", ids=("n1", "n2"), message="nope")
        ]

    @pytest.mark.asyncio
    async def test_other_updates_are_ignored(self, api, state):
        emit = EventRecorder()

        await FetchController(api, state, emit).update_some(["n1"], {"shown": True})
        await FetchController(api, state, emit).update_one("n1", {"read": False})

        assert api.calls == []
        assert emit.events == []
