"""Tests for the index database and bulk writer."""

from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from astplane.core.errors import ErrorCode, NotFoundError
from astplane.index._internal.db import Database
from astplane.index.models import File, Reference, Symbol, SymbolKind, SymbolRecord


def _insert_file(db: Database, file_path: str = "dog.rb") -> int:
    with db.bulk_writer() as writer:
        return writer.insert_returning_id(
            File, {"file_path": file_path, "root_tree": '{"type":"nil","children":[]}'}
        )


class TestDatabase:
    """Database lifecycle tests."""

    def test_given_new_db_when_create_all_then_tables_empty(self, temp_db: Database) -> None:
        """A fresh schema has all three tables with no rows."""
        assert temp_db.table_counts() == {"files": 0, "symbols": 0, "references": 0}

    def test_wal_mode_enabled(self, temp_db: Database) -> None:
        with temp_db.engine.connect() as conn:
            mode = conn.execute(text("PRAGMA journal_mode")).scalar()

        assert mode == "wal"

    def test_recreate_discards_rows(self, temp_db: Database) -> None:
        _insert_file(temp_db)

        temp_db.recreate()

        assert temp_db.table_counts()["files"] == 0

    def test_given_typed_error_in_session_when_raised_then_propagates_unchanged(
        self, temp_db: Database
    ) -> None:
        """Frozen error types leave the session block as themselves."""
        with pytest.raises(NotFoundError) as exc_info, temp_db.session():
            raise NotFoundError.file("horse.rb")

        assert exc_info.value.code == ErrorCode.FILE_NOT_FOUND

    def test_checkpoint_runs_on_empty_wal(self, temp_db: Database) -> None:
        temp_db.checkpoint()

        assert temp_db.table_counts()["files"] == 0


class TestBulkWriter:
    """BulkWriter transaction tests."""

    def test_given_rows_when_committed_then_visible(self, temp_db: Database) -> None:
        """Rows written through the bulk writer are readable after exit."""
        # Given
        record = SymbolRecord(
            file_path="dog.rb",
            name="bark",
            kind=SymbolKind.CALLABLE,
            node_type="def",
            scope="Dog",
            start_line=2,
            end_line=4,
            subtree={"type": "def", "children": ["bark"]},
        )

        # When
        with temp_db.bulk_writer() as writer:
            file_id = writer.insert_returning_id(
                File, {"file_path": "dog.rb", "root_tree": "{}", "line_count": 9}
            )
            inserted = writer.insert_many(Symbol, [record.to_row(file_id)])

        # Then
        assert inserted == 1
        with temp_db.session() as session:
            row = session.exec(select(Symbol)).one()
            restored = SymbolRecord.from_row(row, "dog.rb")
        assert restored.file_id == file_id
        assert restored.subtree == {"type": "def", "children": ["bark"]}
        assert restored.kind is SymbolKind.CALLABLE

    def test_given_error_when_writing_then_rolled_back(self, temp_db: Database) -> None:
        """An exception inside the writer leaves the database unchanged."""
        with pytest.raises(RuntimeError), temp_db.bulk_writer() as writer:
            writer.insert_returning_id(File, {"file_path": "dog.rb", "root_tree": "{}"})
            raise RuntimeError("abort")

        assert temp_db.table_counts()["files"] == 0

    def test_insert_many_empty_is_noop(self, temp_db: Database) -> None:
        with temp_db.bulk_writer() as writer:
            assert writer.insert_many(Reference, []) == 0

    def test_deleting_file_cascades(self, temp_db: Database) -> None:
        file_id = _insert_file(temp_db)
        with temp_db.bulk_writer() as writer:
            writer.insert_many(
                Reference, [{"file_id": file_id, "symbol_name": "Dog", "start_line": 1}]
            )

        with temp_db.engine.begin() as conn:
            conn.execute(text("DELETE FROM files"))

        assert temp_db.table_counts()["references"] == 0

    def test_file_paths_unique(self, temp_db: Database) -> None:
        _insert_file(temp_db, "dog.rb")

        with pytest.raises(IntegrityError, match="UNIQUE"):
            _insert_file(temp_db, "dog.rb")


def test_database_file_created_on_disk(temp_dir: Path) -> None:
    db = Database(temp_dir / "index.db")
    db.create_all()
    db.dispose()

    assert (temp_dir / "index.db").is_file()
