"""Config module exports."""

from astplane.config.loader import load_config, resolve_db_path
from astplane.config.models import (
    AstPlaneConfig,
    IndexConfig,
    IndexerConfig,
    LoggingConfig,
    LogOutputConfig,
    ServerConfig,
)

__all__ = [
    "load_config",
    "resolve_db_path",
    "AstPlaneConfig",
    "IndexConfig",
    "IndexerConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ServerConfig",
]
