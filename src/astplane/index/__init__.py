"""Index module - addressable syntax trees and structural queries.

This module provides:
- Build: discover, parse and extract Ruby files into a fresh SQLite index
- Query: file-local tree queries and name-based cross-file resolution

Public API:
- IndexBuilder, BuildResult: `astplane.index.builder`
- StructuralQueryEngine, CallHierarchy: `astplane.index.ops`

Internal implementations are in `astplane.index._internal/`.
"""

from astplane.index.builder import BuildResult, IndexBuilder
from astplane.index.models import (
    File,
    Reference,
    ReferenceRecord,
    Symbol,
    SymbolKind,
    SymbolRecord,
)
from astplane.index.ops import CallHierarchy, IndexStatus, OutboundCall, StructuralQueryEngine

__all__ = [
    # Build
    "BuildResult",
    "IndexBuilder",
    # Query
    "CallHierarchy",
    "IndexStatus",
    "OutboundCall",
    "StructuralQueryEngine",
    # Models
    "File",
    "Reference",
    "ReferenceRecord",
    "Symbol",
    "SymbolKind",
    "SymbolRecord",
]
