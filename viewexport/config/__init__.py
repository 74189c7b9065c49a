"""Configuration for the view exporter."""

from viewexport.config.models import (
    DEFAULT_CONFIG_FILE,
    DatabaseConfig,
    ExportConfig,
    LoggingConfig,
    MirrorConfig,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DatabaseConfig",
    "ExportConfig",
    "LoggingConfig",
    "MirrorConfig",
    "load_config",
]
