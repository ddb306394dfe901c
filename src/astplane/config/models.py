"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ASTPLANE__SECTION__KEY)
3. Repo YAML (.astplane/config.yaml)
4. Global YAML (~/.config/astplane/config.yaml)
5. Built-in defaults (this file)

Examples:
    ASTPLANE__LOGGING__LEVEL=DEBUG
    ASTPLANE__INDEX__DB_PATH=/tmp/index.db
    ASTPLANE__INDEXER__MAX_WORKERS=4
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from astplane.config.constants import PORT_MAX, PORT_MIN

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ASTPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every symbol written during a build.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexConfig(BaseModel):
    """Index storage and discovery configuration.

    Env vars:
        ASTPLANE__INDEX__DB_PATH: Override index database location
        ASTPLANE__INDEX__MAX_FILE_SIZE_MB: Skip files larger than this
    """

    db_path: str | None = Field(
        default=None,
        description="Index database location. Default: .astplane/index.db in the repo.",
    )
    max_file_size_mb: int = Field(
        default=5,
        description="Skip source files larger than this (MB).",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: [".git", ".astplane", "vendor", "node_modules", "tmp", "log"],
        description="Directory names pruned during discovery.",
    )
    include_globs: list[str] = Field(
        default_factory=lambda: ["**/*.rb"],
        description="Glob patterns (relative to the target dir) selecting source files.",
    )

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_file_size_mb must be positive, got {v}")
        return v


class IndexerConfig(BaseModel):
    """Build pass configuration.

    Env vars:
        ASTPLANE__INDEXER__MAX_WORKERS: Parallel extraction workers
    """

    max_workers: int = Field(
        default=1,
        description="Processes used to parse and extract files. Writes stay single-threaded.",
    )
    store_source_text: bool = Field(
        default=True,
        description="Store each callable's source text alongside its subtree.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be at least 1, got {v}")
        return v


class ServerConfig(BaseModel):
    """Query server configuration.

    Env vars:
        ASTPLANE__SERVER__TRANSPORT: stdio or http
        ASTPLANE__SERVER__HOST: Bind address for http
        ASTPLANE__SERVER__PORT: Port for http
    """

    name: str = Field(default="astplane", description="Server name announced to clients.")
    transport: Literal["stdio", "http"] = Field(default="stdio")
    host: str = Field(
        default="127.0.0.1",
        description="Bind address. Use 0.0.0.0 for network access.",
    )
    port: int = Field(default=65432)

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (PORT_MIN <= v <= PORT_MAX):
            raise ValueError(f"Port must be {PORT_MIN}-{PORT_MAX}, got {v}")
        return v


class AstPlaneConfig(BaseModel):
    """Root configuration for astplane."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
