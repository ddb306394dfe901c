"""Database layer for the index."""

from astplane.index._internal.db.database import BulkWriter, Database

__all__ = ["Database", "BulkWriter"]
