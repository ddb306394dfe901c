"""Configuration constants.

Values here are NOT user-configurable: wire-format and protocol constraints.
For configurable values, see models.py.
"""

# =============================================================================
# Node Addressing
# =============================================================================

NODE_ID_ROOT = "root"
"""Literal segment denoting the tree root in a NodeId."""

NODE_ID_CHILDREN = "children"
"""Literal segment preceding each child index in a NodeId."""

NODE_ID_SEPARATOR = "."

# =============================================================================
# Symbol Extraction
# =============================================================================

SCOPE_SEPARATOR = "::"
"""Joins enclosing container names in a symbol's scope."""

GLOBAL_SCOPE = "global"
"""Scope recorded for definitions outside any container."""

# =============================================================================
# Index Layout
# =============================================================================

ASTPLANE_DIR = ".astplane"
"""Per-repository directory holding config and the default index."""

DEFAULT_DB_NAME = "index.db"

BUILD_SUFFIX = ".building"
"""Suffix of the sibling database a build writes before swapping it in."""

# =============================================================================
# Protocol/Validation Constants
# =============================================================================

PORT_MIN = 0
PORT_MAX = 65535
"""Valid port range."""
