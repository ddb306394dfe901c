"""astplane - structural index and queries for Ruby codebases."""

__version__ = "0.1.0"
