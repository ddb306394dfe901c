"""Source parsing into lowered syntax trees."""

from astplane.index._internal.parsing.ruby import ParsedFile, RubyTreeAdapter

__all__ = ["ParsedFile", "RubyTreeAdapter"]
