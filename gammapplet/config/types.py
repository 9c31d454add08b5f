"""Configuration type definitions and defaults for gammapplet."""

from typing import TypedDict


class DefaultsConfig(TypedDict):
    """Reset targets, in the relay's native units."""

    temperature: int  # Kelvin, 1000 - 10000
    brightness: float  # 0.0 - 1.0
    gamma: float  # 0.5 - 1.5


class SyncConfig(TypedDict):
    """Flush scheduling settings."""

    tick_ms: int  # Flush period in milliseconds
    cross_invalidation: bool  # A flush drops pending input on every parameter


class WindowConfig(TypedDict):
    """Applet window settings."""

    show_invert: bool
    show_temperature: bool
    show_brightness: bool
    show_gamma: bool
    show_caret: bool  # Speech-bubble caret under the window, pointing at the launcher
    show_labels: bool  # Text labels under the controls
    show_value: bool  # Value text of the active control
    never_fade: bool  # Keep the window open when the pointer leaves
    outer_padding: int
    width: int
    height: int
    fade_ms: int  # Duration of a full fade in or out


class RelayConfig(TypedDict):
    """D-Bus connection settings."""

    bus: str  # "SESSION" or "SYSTEM"
    service: str
    path: str
    interface: str
    timeout_s: float  # Per-call timeout, 0 waits forever


class LoggingConfig(TypedDict):
    """Log output settings."""

    level: str
    file: str  # Empty for the default location in the state directory


class Config(TypedDict, total=False):
    """Full application configuration."""

    defaults: DefaultsConfig
    sync: SyncConfig
    window: WindowConfig
    relay: RelayConfig
    logging: LoggingConfig


DEFAULT_CONFIG: Config = {
    "defaults": {
        "temperature": 6500,
        "brightness": 1.0,
        "gamma": 1.0,
    },
    "sync": {
        "tick_ms": 7,
        "cross_invalidation": True,
    },
    "window": {
        "show_invert": True,
        "show_temperature": True,
        "show_brightness": True,
        "show_gamma": True,
        "show_caret": True,
        "show_labels": True,
        "show_value": True,
        "never_fade": False,
        "outer_padding": 8,
        "width": 100,
        "height": 220,
        "fade_ms": 250,
    },
    "relay": {
        "bus": "SESSION",
        "service": "rs.wl-gammarelay",
        "path": "/",
        "interface": "rs.wl.gammarelay",
        "timeout_s": 2.0,
    },
    "logging": {
        "level": "INFO",
        "file": "",
    },
}
