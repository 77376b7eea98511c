from __future__ import annotations

from .integrations import LinkdingConfig
from .settings import (
    MISSING_CONFIG_MESSAGE,
    AppConfig,
    ConfigError,
    RuntimeConfig,
    Settings,
    default_config_path,
    load_config,
    read_config_file,
    save_config,
)

__all__ = [
    "MISSING_CONFIG_MESSAGE",
    "AppConfig",
    "ConfigError",
    "LinkdingConfig",
    "RuntimeConfig",
    "Settings",
    "default_config_path",
    "load_config",
    "read_config_file",
    "save_config",
]
