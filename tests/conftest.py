"""Shared pytest fixtures for gammapplet tests.

This module provides reusable fixtures for:
- A fake gammarelay with call recording
- Sync engines seeded from that relay
- Configuration files
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable

import pytest

from gammapplet.sync import SyncEngine
from tests.helpers import FakeRelay


# ============================================================================
# Relay Fixtures
# ============================================================================


@pytest.fixture
def fake_relay() -> FakeRelay:
    """Relay at its usual idle state (6500 K, full brightness, gamma 1.0)."""
    return FakeRelay()


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def default_targets() -> dict[str, float]:
    """Reset targets matching the shipped defaults."""
    return {"temperature": 6500, "brightness": 1.0, "gamma": 1.0}


@pytest.fixture
def displays() -> list[tuple[Any, str]]:
    """Collects (parameter, text) pairs passed to on_display."""
    return []


@pytest.fixture
def make_engine(default_targets, displays) -> Callable[..., tuple[SyncEngine, FakeRelay]]:
    """Factory building an engine on a fresh FakeRelay.

    Keyword arguments matching FakeRelay state (inverted, temperature,
    brightness, gamma) seed the relay; the rest go to SyncEngine.

    Returns:
        Function returning (engine, relay).
    """

    def factory(**kwargs: Any) -> tuple[SyncEngine, FakeRelay]:
        relay_keys = {"inverted", "temperature", "brightness", "gamma"}
        relay = FakeRelay(**{k: v for k, v in kwargs.items() if k in relay_keys})
        defaults = kwargs.pop("defaults", default_targets)
        engine_kwargs = {k: v for k, v in kwargs.items() if k not in relay_keys}
        engine_kwargs.setdefault("on_display", lambda parameter, text: displays.append((parameter, text)))
        engine = SyncEngine.from_relay(relay, defaults, **engine_kwargs)
        # Startup reads are not interesting to tests
        relay.reads.clear()
        return engine, relay

    return factory


@pytest.fixture
def engine(make_engine) -> SyncEngine:
    """Engine on a relay at the default state."""
    engine, _relay = make_engine()
    return engine


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Create a test configuration dictionary.

    Returns:
        Configuration dict with the shipped defaults.
    """
    from gammapplet.config import DEFAULT_CONFIG

    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def mock_config_file(tmp_path) -> Path:
    """Create a temporary config.toml file.

    Returns:
        Path to temporary config file.
    """
    config_file = tmp_path / "config.toml"
    content = """
[defaults]
temperature = 5000
brightness = 0.8

[sync]
tick_ms = 10
cross_invalidation = false

[window]
show_invert = false
never_fade = true

[relay]
bus = "session"
"""
    config_file.write_text(content)
    return config_file


@pytest.fixture
def isolated_xdg(tmp_path, monkeypatch) -> Path:
    """Point XDG config and state directories into tmp_path.

    Returns:
        The temporary XDG_CONFIG_HOME.
    """
    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))
    return config_home
