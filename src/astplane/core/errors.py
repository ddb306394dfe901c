"""astplane error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (parse failures, missing index/files/nodes/callables)
- 4xxx: Query arguments
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Index (3xxx)
    PARSE_FAILURE = 3001
    FILE_NOT_FOUND = 3002
    NODE_NOT_FOUND = 3003
    CALLABLE_NOT_FOUND = 3004
    INDEX_NOT_FOUND = 3005

    # Query arguments (4xxx)
    INVALID_ARGUMENT = 4001
    UNKNOWN_METHOD = 4002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class AstPlaneError(Exception):
    """Base error with structured context for query responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'FILE_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AstPlaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ParseFailure(AstPlaneError):
    """A file's tree could not be produced. Contained to the file during builds."""

    @classmethod
    def for_file(cls, path: str, reason: str) -> "ParseFailure":
        return cls(
            code=ErrorCode.PARSE_FAILURE,
            message=f"Failed to parse {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class NotFoundError(AstPlaneError):
    """A file, node or callable is not present in the index."""

    @classmethod
    def file(cls, file_path: str) -> "NotFoundError":
        return cls(
            code=ErrorCode.FILE_NOT_FOUND,
            message=f"File not found: {file_path}",
            details={"file_path": file_path},
        )

    @classmethod
    def node(cls, file_path: str, node_id: str) -> "NotFoundError":
        return cls(
            code=ErrorCode.NODE_NOT_FOUND,
            message=f"Node with id '{node_id}' not found in file '{file_path}'",
            details={"file_path": file_path, "node_id": node_id},
        )

    @classmethod
    def callable_at_line(cls, file_path: str, line: int) -> "NotFoundError":
        return cls(
            code=ErrorCode.CALLABLE_NOT_FOUND,
            message=f"No callable encloses line {line} in file '{file_path}'",
            details={"file_path": file_path, "line": line},
        )

    @classmethod
    def index(cls, db_path: str) -> "NotFoundError":
        return cls(
            code=ErrorCode.INDEX_NOT_FOUND,
            message=f"No index at {db_path}. Run 'astplane build' first.",
            details={"db_path": db_path},
        )


class InvalidArgumentError(AstPlaneError):
    """A required query parameter is missing or malformed."""

    @classmethod
    def missing(cls, *params: str) -> "InvalidArgumentError":
        names = " and ".join(params)
        return cls(
            code=ErrorCode.INVALID_ARGUMENT,
            message=f"Missing required parameter: {names}",
            details={"params": list(params)},
        )

    @classmethod
    def malformed(cls, param: str, value: Any, reason: str) -> "InvalidArgumentError":
        return cls(
            code=ErrorCode.INVALID_ARGUMENT,
            message=f"Invalid value for '{param}': {reason}",
            details={"param": param, "value": str(value), "reason": reason},
        )

    @classmethod
    def unknown_method(cls, method: str) -> "InvalidArgumentError":
        return cls(
            code=ErrorCode.UNKNOWN_METHOD,
            message=f"Method not found: {method}",
            details={"method": method},
        )


class InternalError(AstPlaneError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
