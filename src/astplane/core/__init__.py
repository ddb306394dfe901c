"""Core module exports."""

from astplane.core.errors import (
    AstPlaneError,
    ConfigError,
    ErrorCode,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    ParseFailure,
)
from astplane.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from astplane.core.progress import progress, status

__all__ = [
    # Errors
    "AstPlaneError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "InvalidArgumentError",
    "NotFoundError",
    "ParseFailure",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
    # Progress
    "progress",
    "status",
]
