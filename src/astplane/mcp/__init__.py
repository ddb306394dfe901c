"""Query surface - method registry and FastMCP wiring."""

from astplane.mcp.registry import METHOD_NAMES, MethodRegistry, MethodSpec, registry

# Import handlers to trigger registration
from astplane.mcp import tools  # noqa: E402, F401, I001

__all__ = ["METHOD_NAMES", "MethodRegistry", "MethodSpec", "registry"]
