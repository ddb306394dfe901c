"""Database engine and bulk writer.

This module provides:
- Database: Connection manager with WAL mode so readers never block the build
- BulkWriter: Core SQL bulk inserts for the build pass
- Session utilities for the read-only query side

The build pass writes through BulkWriter inside one transaction; everything
else opens ORM sessions and only reads.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, text
from sqlmodel import Session, SQLModel, create_engine

# Registers the tables on SQLModel.metadata
from astplane.index import models as _models  # noqa: F401

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class Database:
    """SQLite connection manager for one index file."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        event.listen(engine, "connect", _configure_pragmas)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        SQLModel.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables."""
        SQLModel.metadata.drop_all(self.engine)

    def recreate(self) -> None:
        """Discard every row by dropping and recreating the schema."""
        self.drop_all()
        self.create_all()
        logger.debug("schema_recreated", db_path=str(self.db_path))

    def session(self) -> Session:
        """ORM session for reads, used as a context manager.

        Errors raised inside the block reach the caller unchanged.
        """
        return Session(self.engine)

    @contextmanager
    def bulk_writer(self) -> Generator[BulkWriter, None, None]:
        """
        Bulk writer for the build pass.

        Auto-commits on successful exit, rolls back on exception.
        """
        writer = BulkWriter(self.engine)
        try:
            yield writer
            writer.commit()
        except Exception:
            writer.rollback()
            raise
        finally:
            writer.close()

    def table_counts(self) -> dict[str, int]:
        """Row counts of the index tables."""
        counts: dict[str, int] = {}
        with self.engine.connect() as conn:
            for name in ("files", "symbols", "references"):
                row = conn.execute(text(f'SELECT COUNT(*) FROM "{name}"')).one()
                counts[name] = int(row[0])
        return counts

    def checkpoint(self) -> None:
        """Fold the WAL back into the main file before the database is moved."""
        with self.engine.connect() as conn:
            conn.execute(text("PRAGMA wal_checkpoint(TRUNCATE)"))
            logger.debug("wal_checkpoint_completed")

    def dispose(self) -> None:
        self.engine.dispose()


def _configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
    """Configure SQLite for concurrent readers and a single writer."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second wait
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class BulkWriter:
    """Bulk insert using Core SQL, bypassing ORM overhead."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.conn = engine.connect()
        self.transaction = self.conn.begin()

    def insert_many(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> int:
        """Bulk insert records into table, returning count inserted."""
        if not records:
            return 0

        table = model_class.__table__  # type: ignore[attr-defined]
        self.conn.execute(table.insert(), records)
        return len(records)

    def insert_returning_id(self, model_class: type[SQLModel], record: dict[str, Any]) -> int:
        """Insert one row and return its generated primary key."""
        table = model_class.__table__  # type: ignore[attr-defined]
        result = self.conn.execute(table.insert(), record)
        primary_key = result.inserted_primary_key
        if primary_key is None:
            raise RuntimeError(f"Insert into {table.name} returned no primary key")
        return int(primary_key[0])

    def commit(self) -> None:
        self.transaction.commit()

    def rollback(self) -> None:
        self.transaction.rollback()

    def close(self) -> None:
        self.conn.close()
