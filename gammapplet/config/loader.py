"""Configuration loading for gammapplet."""

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from gammapplet.config.types import DEFAULT_CONFIG, Config

logger = logging.getLogger(__name__)

# (section, key) -> inclusive (low, high) bounds
_RANGES: dict[tuple[str, str], tuple[float, float]] = {
    ("defaults", "temperature"): (1000, 10000),
    ("defaults", "brightness"): (0.0, 1.0),
    ("defaults", "gamma"): (0.5, 1.5),
    ("sync", "tick_ms"): (1, 1000),
    ("window", "outer_padding"): (0, 200),
    ("window", "width"): (20, 4000),
    ("window", "height"): (20, 4000),
    ("window", "fade_ms"): (0, 10000),
    ("relay", "timeout_s"): (0.0, 60.0),
}

_BUSES = {"SESSION", "SYSTEM"}


def _get_user_config_path() -> Path:
    """Get path to the user config file.

    Returns:
        $XDG_CONFIG_HOME/gammapplet/config.toml, falling back to ~/.config.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if not config_home:
        config_home = Path.home() / ".config"
    return Path(config_home) / "gammapplet" / "config.toml"


def _get_state_dir() -> Path:
    """Get the directory for the log file.

    Returns:
        $XDG_STATE_HOME/gammapplet, falling back to ~/.local/state.
    """
    state_home = os.environ.get("XDG_STATE_HOME")
    if not state_home:
        state_home = Path.home() / ".local" / "state"
    return Path(state_home) / "gammapplet"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Replace out-of-range or mistyped values with their defaults.

    Args:
        config: Merged configuration (modified in place).

    Returns:
        The same dictionary.
    """
    for (section, key), (low, high) in _RANGES.items():
        value = config[section][key]
        default = DEFAULT_CONFIG[section][key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not low <= value <= high:
            logger.warning(
                "config: %s.%s=%r outside [%s, %s], using %r",
                section,
                key,
                value,
                low,
                high,
                default,
            )
            config[section][key] = default

    bus = str(config["relay"]["bus"]).upper()
    if bus not in _BUSES:
        logger.warning("config: relay.bus=%r unknown, using SESSION", config["relay"]["bus"])
        bus = "SESSION"
    config["relay"]["bus"] = bus
    return config


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration.

    Priority (highest to lowest):
    1. The explicit config file, or the user file in $XDG_CONFIG_HOME
    2. Hardcoded DEFAULT_CONFIG

    A broken user file is logged and ignored. A broken explicit file is an
    error, since the user asked for it by name.

    Args:
        config_path: Optional explicit path (--config).

    Returns:
        Configuration dictionary with defaults applied and values validated.

    Raises:
        OSError: If an explicit config file cannot be read.
        tomllib.TOMLDecodeError: If an explicit config file is not valid TOML.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is not None:
        logger.debug("load_config: explicit path=%s", config_path)
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
        return _validate_config(_deep_merge(config, user_config))

    user_path = _get_user_config_path()
    if user_path.exists():
        try:
            with open(user_path, "rb") as f:
                user_config = tomllib.load(f)
            config = _deep_merge(config, user_config)
            logger.info("load_config: loaded user config from %s", user_path)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("load_config: failed to load user config (using defaults): %s", e)

    return _validate_config(config)
