"""Shared pytest fixtures."""

import tempfile
from pathlib import Path

import pytest

from notifsync.utils.debug import reload_config
from tests.helpers.factories import make_notification


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch):
    """Keep debug/error logs out of the real config directory."""
    monkeypatch.setenv("NOTIFSYNC_DIR", str(tmp_path / "default"))
    reload_config()
    yield
    reload_config()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def mock_notifsync_dir(temp_dir, monkeypatch):
    """Set up a mock notifsync config directory."""
    notifsync_dir = temp_dir / ".notifsync"
    notifsync_dir.mkdir()
    monkeypatch.setenv("NOTIFSYNC_DIR", str(notifsync_dir))
    return notifsync_dir


@pytest.fixture
def sample_notifications():
    """Three notifications, newest-created first."""
    return [
        make_notification("n3", "2024-03-03T00:00:00", "2024-03-03T00:00:00", "vote"),
        make_notification("n2", "2024-03-02T00:00:00", "2024-03-05T00:00:00", "reply"),
        make_notification("n1", "2024-03-01T00:00:00", "2024-03-04T00:00:00", "reply"),
    ]
