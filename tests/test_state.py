"""Tests for the store state."""

import yaml

from gitstore.state import Mode, StoreState


def test_snapshot() -> None:
    """Test the snapshot is a plain dictionary."""
    state = StoreState(mode=Mode.DEGRADED, pending=True, error="boom", branch="main")
    assert state.snapshot() == {
        "mode": "DEGRADED",
        "pending": True,
        "error": "boom",
        "branch": "main",
    }
    assert state.remote_enabled
    assert str(state) == "DEGRADED (pending=True): boom"


def test_yaml() -> None:
    """Test the YAML rendering used by the command line tool."""
    state = StoreState()
    assert yaml.safe_load(state.yaml()) == {
        "mode": "LOCAL",
        "pending": False,
        "error": None,
        "branch": "main",
    }
    assert not state.remote_enabled
    assert str(state) == "LOCAL (pending=False)"
