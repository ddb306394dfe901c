"""Shared fixtures for index tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from astplane.index._internal.db import Database
    from astplane.index._internal.parsing import RubyTreeAdapter


@pytest.fixture
def temp_db(temp_dir: Path) -> Generator[Database, None, None]:
    """Create a temporary database with schema."""
    from astplane.index._internal.db import Database

    db = Database(temp_dir / "test.db")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture(scope="module")
def adapter() -> RubyTreeAdapter:
    """Shared tree-sitter Ruby adapter."""
    from astplane.index._internal.parsing import RubyTreeAdapter

    return RubyTreeAdapter()
