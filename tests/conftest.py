"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides the Ruby fixture repo plus a built index over it.
"""

from __future__ import annotations

import shutil
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

if TYPE_CHECKING:
    from astplane.index.ops import StructuralQueryEngine

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ruby_fixtures_dir() -> Path:
    """Directory holding dog.rb and cat.rb."""
    return FIXTURES_DIR / "ruby"


@pytest.fixture
def ruby_repo(temp_dir: Path, ruby_fixtures_dir: Path) -> Path:
    """A writable copy of the Ruby fixtures."""
    repo = temp_dir / "repo"
    shutil.copytree(ruby_fixtures_dir, repo)
    return repo


@pytest.fixture
def index_path(ruby_repo: Path) -> Path:
    """Build the fixture repo and return the database path."""
    from astplane.index.builder import IndexBuilder

    db_path = ruby_repo / ".astplane" / "index.db"
    IndexBuilder(ruby_repo, db_path).build()
    return db_path


@pytest.fixture
def engine(index_path: Path) -> Generator[StructuralQueryEngine, None, None]:
    """Query engine over the built fixture repo."""
    from astplane.index.ops import StructuralQueryEngine

    query_engine = StructuralQueryEngine.open(index_path)
    yield query_engine
    query_engine.close()
