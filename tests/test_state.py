"""Tests for the notification state reducer."""

from notifsync.core.events import (
    FullSetReceived,
    IncrementalSetReceived,
    NotificationsMerged,
    QueueSubmissionFailed,
    QueueSubmissionSucceeded,
    UserLoggedOut,
)
from notifsync.core.models import Transition
from notifsync.core.state import NotificationState, get_ids_read_pending
from tests.helpers.factories import make_notification


def test_full_set_replaces_and_sorts(sample_notifications):
    """A full set replaces the store, kept newest-created first."""
    state = NotificationState("basil")
    state.apply(FullSetReceived([make_notification("old", "2020-01-01")]))

    state.apply(FullSetReceived(list(reversed(sample_notifications))))

    assert [n.id for n in state.notifications()] == ["n3", "n2", "n1"]


def test_incremental_set_merges(sample_notifications):
    state = NotificationState("basil")
    state.apply(FullSetReceived(sample_notifications))

    newer = make_notification("n4", "2024-03-10T00:00:00")
    changed = make_notification("n1", "2024-03-01T00:00:00", "2024-03-11T00:00:00", read=True)
    state.apply(IncrementalSetReceived([newer, changed]))

    assert [n.id for n in state.notifications()] == ["n4", "n3", "n2", "n1"]
    assert state.by_id["n1"].read is True


def test_unknown_payload_is_ignored(sample_notifications):
    state = NotificationState("basil")
    state.apply(FullSetReceived(sample_notifications))

    state.apply(NotificationsMerged({"data": "x"}))

    assert len(state.notifications()) == 3


def test_queue_read_cancels_pending_unread():
    state = NotificationState()
    state.queue_unread(["a", "b"])
    state.queue_read(["a"])

    assert state.pending("read") == ["a"]
    assert state.pending("unread") == ["b"]


def test_success_clears_only_submitted_ids(sample_notifications):
    """Ids queued during an in-flight drain survive its success."""
    state = NotificationState()
    state.apply(FullSetReceived(sample_notifications))
    state.queue_read(["n1", "n2"])
    snapshot = tuple(get_ids_read_pending(state))
    state.queue_read(["n3"])

    state.apply(QueueSubmissionSucceeded("read", snapshot, Transition(read=True)))

    assert state.pending("read") == ["n3"]
    assert state.by_id["n1"].read is True
    assert state.by_id["n2"].read is True
    assert state.by_id["n3"].read is False


def test_failure_keeps_queue():
    state = NotificationState()
    state.queue_shown(["a", "b"])

    state.apply(QueueSubmissionFailed("shown", ("a", "b"), "boom"))

    assert state.pending("shown") == ["a", "b"]
    assert state.last_error == "boom"


def test_logout_recorded():
    state = NotificationState()
    state.apply(UserLoggedOut())
    assert state.logged_out is True


def test_load_pending_replaces_queue():
    state = NotificationState("basil")
    state.queue_read(["a", "b"])

    state.load_pending("read", ["c", "a"])

    assert state.pending("read") == ["c", "a"]
    assert state.pending("unread") == []
