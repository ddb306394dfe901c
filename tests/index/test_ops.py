"""Tests for structural queries over a built index."""

from pathlib import Path

import pytest

from astplane.core.errors import ErrorCode, NotFoundError
from astplane.index._internal.db import Database
from astplane.index.builder import IndexBuilder
from astplane.index.models import SymbolKind
from astplane.index.ops import StructuralQueryEngine


class TestOpen:
    def test_missing_index_raises(self, temp_dir: Path) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            StructuralQueryEngine.open(temp_dir / "absent.db")

        assert exc_info.value.code == ErrorCode.INDEX_NOT_FOUND


class TestFileQueries:
    """Queries answered from one file's stored tree."""

    def test_list_files_sorted(self, engine: StructuralQueryEngine) -> None:
        assert engine.list_files() == ["cat.rb", "dog.rb"]

    def test_status_counts(self, engine: StructuralQueryEngine, index_path: Path) -> None:
        assert engine.status().to_dict() == {
            "status": "ok",
            "db_path": str(index_path),
            "files": 2,
            "symbols": 7,
            "references": 6,
        }

    def test_given_dog_when_get_symbols_then_source_order(
        self, engine: StructuralQueryEngine
    ) -> None:
        """Symbols come back in the order they appear in the file."""
        # When
        symbols = engine.get_symbols("dog.rb")

        # Then
        assert [(s.name, s.kind, s.scope) for s in symbols] == [
            ("Dog", SymbolKind.TYPE, "global"),
            ("bark", SymbolKind.CALLABLE, "Dog"),
            ("wag_tail", SymbolKind.CALLABLE, "Dog"),
        ]
        assert all(s.file_path == "dog.rb" for s in symbols)

    def test_get_tree_root(self, engine: StructuralQueryEngine) -> None:
        root = engine.get_tree("dog.rb")

        assert root.kind == "class"
        assert (root.start_line, root.end_line) == (1, 9)

    def test_given_def_kind_when_query_nodes_then_addressed_defs(
        self, engine: StructuralQueryEngine
    ) -> None:
        """query_nodes returns each match with an id that resolves back to it."""
        # When
        matches = engine.query_nodes("dog.rb", "def")

        # Then
        assert len(matches) == 2
        first_id, first = matches[0]
        assert str(first_id) == "root.children.2.children.0"
        assert first.child(0) == "bark"
        assert engine.get_node_details("dog.rb", str(first_id)) == first

    def test_query_nodes_unknown_kind_is_empty(self, engine: StructuralQueryEngine) -> None:
        assert engine.query_nodes("dog.rb", "while") == []

    def test_get_ancestors_root_first(self, engine: StructuralQueryEngine) -> None:
        ancestors = engine.get_ancestors("dog.rb", "root.children.2.children.0")

        assert [node.kind for _, node in ancestors] == ["class", "begin"]
        assert [str(node_id) for node_id, _ in ancestors] == ["root", "root.children.2"]

    def test_get_ancestors_of_root_is_empty(self, engine: StructuralQueryEngine) -> None:
        assert engine.get_ancestors("dog.rb", "root") == []


class TestCrossFileQueries:
    """Name-based definition and reference lookups."""

    def test_find_definition(self, engine: StructuralQueryEngine) -> None:
        definitions = engine.find_definition("Dog")

        assert len(definitions) == 1
        assert definitions[0].file_path == "dog.rb"
        assert definitions[0].node_type == "class"

    def test_find_definition_unknown_name(self, engine: StructuralQueryEngine) -> None:
        assert engine.find_definition("Horse") == []

    def test_given_dog_when_find_references_then_both_files(
        self, engine: StructuralQueryEngine
    ) -> None:
        """References are ordered by file then by position in the file."""
        references = engine.find_references("Dog")

        assert [(r.file_path, r.start_line) for r in references] == [
            ("cat.rb", 5),
            ("dog.rb", 1),
        ]

    def test_find_references_for_method(self, engine: StructuralQueryEngine) -> None:
        references = engine.find_references("wag_tail")

        assert [(r.file_path, r.start_line) for r in references] == [("cat.rb", 13)]


class TestCallHierarchy:
    def test_given_line_in_method_when_get_call_hierarchy_then_outbound_calls(
        self, engine: StructuralQueryEngine
    ) -> None:
        """The callable enclosing a line reports the calls made inside it."""
        # When
        hierarchy = engine.get_call_hierarchy("cat.rb", 12)

        # Then
        assert hierarchy.symbol.name == "scratch"
        assert (hierarchy.symbol.start_line, hierarchy.symbol.end_line) == (12, 14)
        assert hierarchy.inbound == []
        assert hierarchy.to_dict()["outbound"] == [{"name": "wag_tail", "line": 13}]

    def test_inbound_callers_by_name(self, engine: StructuralQueryEngine) -> None:
        hierarchy = engine.get_call_hierarchy("dog.rb", 7)

        assert hierarchy.symbol.name == "wag_tail"
        assert [(r.file_path, r.start_line) for r in hierarchy.inbound] == [("cat.rb", 13)]
        assert hierarchy.outbound == []

    def test_constants_are_not_outbound_calls(self, engine: StructuralQueryEngine) -> None:
        hierarchy = engine.get_call_hierarchy("cat.rb", 5)

        assert hierarchy.symbol.name == "initialize"
        assert [c.name for c in hierarchy.outbound] == ["new"]

    def test_line_outside_callables_raises(self, engine: StructuralQueryEngine) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            engine.get_call_hierarchy("cat.rb", 2)

        assert exc_info.value.code == ErrorCode.CALLABLE_NOT_FOUND

    def test_innermost_callable_wins(self, ruby_repo: Path) -> None:
        from astplane.index.builder import IndexBuilder

        (ruby_repo / "nested.rb").write_text(
            "def outer\n  def inner\n    helper\n  end\nend\n"
        )
        db_path = ruby_repo / ".astplane" / "index.db"
        IndexBuilder(ruby_repo, db_path).build()
        engine = StructuralQueryEngine.open(db_path)
        try:
            assert engine.get_call_hierarchy("nested.rb", 3).symbol.name == "inner"
            assert engine.get_call_hierarchy("nested.rb", 5).symbol.name == "outer"
        finally:
            engine.close()


class TestNotFound:
    """Error codes for missing files and nodes."""

    @pytest.mark.parametrize(
        "call",
        [
            lambda e: e.get_symbols("horse.rb"),
            lambda e: e.get_tree("horse.rb"),
            lambda e: e.query_nodes("horse.rb", "def"),
            lambda e: e.get_call_hierarchy("horse.rb", 1),
        ],
    )
    def test_unknown_file(self, engine: StructuralQueryEngine, call) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(NotFoundError) as exc_info:
            call(engine)

        assert exc_info.value.code == ErrorCode.FILE_NOT_FOUND

    @pytest.mark.parametrize("node_id", ["root.children.9", "root.children.1", "nonsense"])
    def test_unknown_node(self, engine: StructuralQueryEngine, node_id: str) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            engine.get_node_details("dog.rb", node_id)

        assert exc_info.value.code == ErrorCode.NODE_NOT_FOUND

    def test_unknown_node_ancestors(self, engine: StructuralQueryEngine) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            engine.get_ancestors("dog.rb", "root.children.9")

        assert exc_info.value.code == ErrorCode.NODE_NOT_FOUND


class TestRebuild:
    """An open engine follows the database a later build swaps in."""

    def test_given_open_engine_when_rebuilt_then_new_tree_served(
        self, engine: StructuralQueryEngine, ruby_repo: Path, index_path: Path
    ) -> None:
        """Trees cached before the rebuild are dropped with the old file."""
        # Given
        assert engine.get_tree("dog.rb").end_line == 9
        (ruby_repo / "dog.rb").write_text('class Dog\n  def bark\n    "Woof!"\n  end\nend\n')

        # When
        IndexBuilder(ruby_repo, index_path).build()

        # Then
        assert engine.get_tree("dog.rb").end_line == 5
        assert [s.name for s in engine.get_symbols("dog.rb")] == ["Dog", "bark"]
        assert engine.status().symbols == 6

    def test_given_rebuild_removes_file_when_queried_then_not_found(
        self, engine: StructuralQueryEngine, ruby_repo: Path, index_path: Path
    ) -> None:
        """A file dropped by the rebuild is no longer served from the cache."""
        # Given
        engine.get_tree("cat.rb")
        (ruby_repo / "cat.rb").unlink()

        # When
        IndexBuilder(ruby_repo, index_path).build()

        # Then
        with pytest.raises(NotFoundError) as exc_info:
            engine.get_tree("cat.rb")
        assert exc_info.value.code == ErrorCode.FILE_NOT_FOUND

    def test_deleted_index_reports_index_not_found(
        self, engine: StructuralQueryEngine, index_path: Path
    ) -> None:
        index_path.unlink()

        with pytest.raises(NotFoundError) as exc_info:
            engine.list_files()

        assert exc_info.value.code == ErrorCode.INDEX_NOT_FOUND


class TestTreeCache:
    def test_cache_is_bounded(self, index_path: Path) -> None:
        engine = StructuralQueryEngine(Database(index_path), max_cached_trees=1)
        try:
            engine.get_tree("dog.rb")
            engine.get_tree("cat.rb")

            assert list(engine._trees) == ["cat.rb"]
        finally:
            engine.close()

    def test_cached_tree_reused(self, engine: StructuralQueryEngine) -> None:
        first = engine.query_nodes("dog.rb", "def")
        second = engine.query_nodes("dog.rb", "def")

        assert [n for _, n in first] == [n for _, n in second]
        assert list(engine._trees) == ["dog.rb"]
