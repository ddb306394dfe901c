"""FastMCP server creation and wiring.

Every registry method becomes one MCP tool whose parameters are the method's
params model, flattened. Calls go through ``registry.dispatch`` so MCP clients
receive the same envelope as CLI callers.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from fastmcp.utilities.json_schema import dereference_refs

from astplane.config.models import ServerConfig
from astplane.mcp.registry import MethodSpec, registry

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from astplane.index.ops import StructuralQueryEngine

log = structlog.get_logger(__name__)


def _extract_log_params(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Key params for the tool_start log line, long strings truncated."""
    params: dict[str, Any] = {}
    for key, value in kwargs.items():
        if isinstance(value, str) and len(value) > 50:
            params[key] = value[:50] + "..."
        elif value is not None:
            params[key] = value
    return params


def create_mcp_server(engine: StructuralQueryEngine, config: ServerConfig | None = None) -> FastMCP:
    """Create a FastMCP server with every registered method wired to ``engine``."""
    from fastmcp import FastMCP

    config = config or ServerConfig()
    registry.validate()

    mcp = FastMCP(
        config.name,
        instructions="Structural queries over an indexed Ruby codebase.",
    )

    tool_count = 0
    for spec in registry.get_all():
        _wire_tool(mcp, spec, engine)
        tool_count += 1

    log.info("mcp_server_created", tool_count=tool_count)
    return mcp


def _wire_tool(mcp: FastMCP, spec: MethodSpec, engine: StructuralQueryEngine) -> None:
    """Wire a single method spec to FastMCP.

    The handler takes the params model's fields as keyword arguments so FastMCP
    publishes a flat schema.
    """
    from fastmcp.tools.function_tool import FunctionTool

    flat_schema = dereference_refs(spec.params_model.model_json_schema())
    method = spec.name

    async def handler(**kwargs: Any) -> dict[str, Any]:
        log.info("tool_start", tool=method, **_extract_log_params(kwargs))
        response = registry.dispatch(engine, method, kwargs)
        if not response["success"]:
            log.warning("tool_error", tool=method, error=response["error"]["message"])
        return response

    tool = FunctionTool(
        name=spec.name,
        description=spec.description,
        parameters=flat_schema,
        fn=handler,
    )
    mcp.add_tool(tool)


def run_server(db_path: Path, config: ServerConfig | None = None) -> None:
    """Open the index at ``db_path`` and serve it until interrupted."""
    from astplane.index.ops import StructuralQueryEngine

    config = config or ServerConfig()
    engine = StructuralQueryEngine.open(db_path)
    mcp = create_mcp_server(engine, config)

    log.info(
        "mcp_server_starting",
        db_path=str(db_path),
        transport=config.transport,
        host=config.host if config.transport == "http" else None,
        port=config.port if config.transport == "http" else None,
    )
    try:
        if config.transport == "http":
            mcp.run(transport="http", host=config.host, port=config.port)
        else:
            mcp.run()
    finally:
        engine.close()
        log.info("mcp_server_stopped")
