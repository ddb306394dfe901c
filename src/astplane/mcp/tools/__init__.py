"""Query method handlers."""

from astplane.mcp.tools import query

__all__ = ["query"]
