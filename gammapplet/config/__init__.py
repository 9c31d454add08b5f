"""Configuration loading for gammapplet."""

from gammapplet.config.types import (
    Config,
    DEFAULT_CONFIG,
    DefaultsConfig,
    LoggingConfig,
    RelayConfig,
    SyncConfig,
    WindowConfig,
)
from gammapplet.config.loader import (
    _deep_merge,
    _get_state_dir,
    _get_user_config_path,
    load_config,
)

__all__ = [
    # Types
    "Config",
    "DEFAULT_CONFIG",
    "DefaultsConfig",
    "LoggingConfig",
    "RelayConfig",
    "SyncConfig",
    "WindowConfig",
    # Loading
    "load_config",
    "_deep_merge",
    "_get_state_dir",
    "_get_user_config_path",
]
