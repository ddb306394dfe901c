"""Symbol and reference extraction."""

from astplane.index._internal.indexing.extractor import (
    Extraction,
    SymbolExtractor,
    definition_name,
    format_scope,
    reference_name,
)

__all__ = ["Extraction", "SymbolExtractor", "definition_name", "format_scope", "reference_name"]
