"""Tests for cursor selection."""

import pytest

from notifsync.core.cursor import select_cursor


def test_empty_set_has_no_cursor():
    """An empty store gives no cursor in either direction."""
    assert select_cursor("before", []) is None
    assert select_cursor("after", []) is None


def test_before_uses_oldest_created(sample_notifications):
    """'before' pages back from the last (earliest-created) notification."""
    assert select_cursor("before", sample_notifications) == "2024-03-01T00:00:00"


def test_after_uses_max_updated(sample_notifications):
    """'after' pages forward from the latest update, not the latest creation."""
    assert select_cursor("after", sample_notifications) == "2024-03-05T00:00:00"


def test_single_notification(sample_notifications):
    only = sample_notifications[:1]
    assert select_cursor("before", only) == only[0].created
    assert select_cursor("after", only) == only[0].updated


def test_is_deterministic(sample_notifications):
    first = select_cursor("after", sample_notifications)
    second = select_cursor("after", sample_notifications)
    assert first == second


def test_unknown_direction_rejected(sample_notifications):
    with pytest.raises(ValueError):
        select_cursor("sideways", sample_notifications)
