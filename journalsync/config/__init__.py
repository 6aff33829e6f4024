# JournalSync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from journalsync.config.defaults import DEFAULT_CONFIG, generate_default_config, get_default_config
from journalsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from journalsync.config.schema import (
    DependencyConfig,
    JournalSyncConfig,
    LogLevel,
    OutputConfig,
    ServerConfig,
    SourceConfig,
    TransmissionConfig,
)

__all__ = [
    # Schema
    "JournalSyncConfig",
    "SourceConfig",
    "ServerConfig",
    "TransmissionConfig",
    "DependencyConfig",
    "OutputConfig",
    "LogLevel",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    "generate_default_config",
]
