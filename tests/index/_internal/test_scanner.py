"""Tests for source file discovery."""

from pathlib import Path

import pytest

from astplane.config.models import IndexConfig
from astplane.index._internal.discovery import SourceScanner, matches_glob


def _touch(root: Path, rel_path: str, content: str = "") -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestMatchesGlob:
    @pytest.mark.parametrize(
        ("rel_path", "pattern", "expected"),
        [
            ("dog.rb", "**/*.rb", True),
            ("app/models/dog.rb", "**/*.rb", True),
            ("app/models/dog.py", "**/*.rb", False),
            ("app/dog.rb", "app/*.rb", True),
            ("lib/dog.rb", "app/*.rb", False),
        ],
    )
    def test_patterns(self, rel_path: str, pattern: str, expected: bool) -> None:
        assert matches_glob(rel_path, pattern) is expected


class TestSourceScanner:
    """Directory walk tests."""

    def test_given_mixed_tree_when_scan_then_sorted_ruby_files(self, temp_dir: Path) -> None:
        """Only matching files are returned, relative and sorted."""
        # Given
        _touch(temp_dir, "lib/zebra.rb")
        _touch(temp_dir, "app/models/dog.rb")
        _touch(temp_dir, "cat.rb")
        _touch(temp_dir, "README.md")

        # When
        result = SourceScanner(temp_dir).scan()

        # Then
        assert result.files == ["app/models/dog.rb", "cat.rb", "lib/zebra.rb"]

    def test_given_excluded_dirs_when_scan_then_pruned(self, temp_dir: Path) -> None:
        """Vendored and hidden index directories are never entered."""
        _touch(temp_dir, "vendor/gem/lib/gem.rb")
        _touch(temp_dir, ".astplane/hook.rb")
        _touch(temp_dir, "app/dog.rb")

        result = SourceScanner(temp_dir).scan()

        assert result.files == ["app/dog.rb"]

    def test_custom_globs(self, temp_dir: Path) -> None:
        _touch(temp_dir, "app/dog.rb")
        _touch(temp_dir, "Rakefile.rake")

        config = IndexConfig(include_globs=["**/*.rake"])
        result = SourceScanner(temp_dir, config).scan()

        assert result.files == ["Rakefile.rake"]

    def test_oversized_files_skipped(self, temp_dir: Path) -> None:
        _touch(temp_dir, "big.rb", "#" * (1024 * 1024 + 1))
        _touch(temp_dir, "small.rb", "x = 1\n")

        result = SourceScanner(temp_dir, IndexConfig(max_file_size_mb=1)).scan()

        assert result.files == ["small.rb"]
        assert result.skipped_too_large == ["big.rb"]

    def test_empty_directory(self, temp_dir: Path) -> None:
        result = SourceScanner(temp_dir).scan()

        assert result.files == []
        assert result.skipped_too_large == []
