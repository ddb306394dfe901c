"""Tests for method registration and dispatch."""

from unittest.mock import MagicMock

import pytest

from astplane.core.errors import ErrorCode, InternalError, NotFoundError
from astplane.index.ops import StructuralQueryEngine
from astplane.mcp import METHOD_NAMES, MethodRegistry, registry
from astplane.mcp.tools.base import FileParams


class TestRegistration:
    def test_all_methods_registered(self) -> None:
        assert {spec.name for spec in registry.get_all()} == METHOD_NAMES

    def test_validate_passes_for_global_registry(self) -> None:
        registry.validate()

    def test_get_all_sorted(self) -> None:
        names = [spec.name for spec in registry.get_all()]

        assert names == sorted(names)

    def test_given_partial_registry_when_validate_then_internal_error(self) -> None:
        """A registry missing methods fails its startup check."""
        # Given
        partial = MethodRegistry()

        @partial.register("get_tree", "tree", FileParams)
        def _get_tree(engine, params):  # type: ignore[no-untyped-def]
            return {}

        @partial.register("rename_symbol", "not supported", FileParams)
        def _rename(engine, params):  # type: ignore[no-untyped-def]
            return {}

        # When
        with pytest.raises(InternalError) as exc_info:
            partial.validate()

        # Then
        assert "rename_symbol" in exc_info.value.details["unexpected"]
        assert "get_symbols" in exc_info.value.details["missing"]


class TestDispatch:
    """Envelope shape for every outcome."""

    def test_given_valid_call_when_dispatch_then_success_envelope(
        self, engine: StructuralQueryEngine
    ) -> None:
        """A successful call carries its result and no error."""
        response = registry.dispatch(engine, "list_files", {})

        assert response == {"success": True, "result": {"files": ["cat.rb", "dog.rb"]}, "error": None}

    def test_get_symbols_result_shape(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(engine, "get_symbols", {"file_path": "dog.rb"})

        symbols = response["result"]["symbols"]
        assert [s["name"] for s in symbols] == ["Dog", "bark", "wag_tail"]
        assert symbols[1]["kind"] == "callable"
        assert symbols[1]["subtree"]["type"] == "def"

    def test_query_nodes_result_carries_ids(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(engine, "query_nodes", {"file_path": "dog.rb", "type": "def"})

        nodes = response["result"]["nodes"]
        assert nodes[0]["id"] == "root.children.2.children.0"
        assert nodes[0]["type"] == "def"
        assert nodes[0]["children"][0] == "bark"

    def test_get_node_details_result(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(
            engine, "get_node_details", {"file_path": "dog.rb", "node_id": "root.children.0"}
        )

        assert response["result"]["node"]["id"] == "root.children.0"
        assert response["result"]["node"]["children"] == [None, "Dog"]

    def test_get_ancestors_result(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(
            engine,
            "get_ancestors",
            {"file_path": "dog.rb", "node_id": "root.children.2.children.0"},
        )

        assert [a["type"] for a in response["result"]["ancestors"]] == ["class", "begin"]

    def test_call_hierarchy_line_coerced_from_string(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(
            engine, "get_call_hierarchy", {"file_path": "cat.rb", "line": "12"}
        )

        assert response["success"] is True
        assert response["result"]["symbol"]["name"] == "scratch"
        assert response["result"]["outbound"] == [{"name": "wag_tail", "line": 13}]

    def test_unknown_method(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(engine, "rename_symbol", {})

        assert response["success"] is False
        assert response["result"] is None
        assert response["error"]["code"] == ErrorCode.UNKNOWN_METHOD.value
        assert response["error"]["message"] == "Method not found: rename_symbol"

    def test_missing_parameter(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(engine, "get_tree", {})

        assert response["error"]["code"] == ErrorCode.INVALID_ARGUMENT.value
        assert "file_path" in response["error"]["message"]

    @pytest.mark.parametrize(
        ("method", "params"),
        [
            ("get_call_hierarchy", {"file_path": "cat.rb", "line": "twelve"}),
            ("get_call_hierarchy", {"file_path": "cat.rb", "line": 0}),
            ("get_tree", {"file_path": "dog.rb", "extra": 1}),
            ("find_definition", {"name": ""}),
        ],
    )
    def test_malformed_parameters(
        self, engine: StructuralQueryEngine, method: str, params: dict
    ) -> None:
        response = registry.dispatch(engine, method, params)

        assert response["success"] is False
        assert response["error"]["code"] == ErrorCode.INVALID_ARGUMENT.value

    def test_domain_error_passed_through(self, engine: StructuralQueryEngine) -> None:
        response = registry.dispatch(engine, "get_tree", {"file_path": "horse.rb"})

        assert response["error"]["code"] == ErrorCode.FILE_NOT_FOUND.value
        assert response["error"]["message"] == "File not found: horse.rb"

    def test_given_unexpected_exception_when_dispatch_then_internal_error(self) -> None:
        """Exceptions outside the error hierarchy come back as INTERNAL_ERROR."""
        # Given
        broken = MagicMock(spec=StructuralQueryEngine)
        broken.list_files.side_effect = RuntimeError("disk on fire")

        # When
        response = registry.dispatch(broken, "list_files", {})

        # Then
        assert response["success"] is False
        assert response["error"]["code"] == ErrorCode.INTERNAL_ERROR.value
        assert "disk on fire" in response["error"]["message"]
        assert response["error"]["details"]["operation"] == "list_files"

    def test_typed_error_from_engine_mock(self) -> None:
        broken = MagicMock(spec=StructuralQueryEngine)
        broken.get_tree.side_effect = NotFoundError.file("a.rb")

        response = registry.dispatch(broken, "get_tree", {"file_path": "a.rb"})

        assert response["error"]["error"] == "FILE_NOT_FOUND"
