"""Structural query handlers - symbols, nodes, definitions, call hierarchy."""

from typing import TYPE_CHECKING, Any

from pydantic import Field

from astplane.index._internal.tree import Node, NodeId
from astplane.mcp.registry import registry
from astplane.mcp.tools.base import BaseParams, FileParams, NameParams, NodeParams

if TYPE_CHECKING:
    from astplane.index.ops import StructuralQueryEngine


# =============================================================================
# Parameter Models
# =============================================================================


class EmptyParams(BaseParams):
    pass


class QueryNodesParams(FileParams):
    type: str = Field(..., min_length=1, description="Node kind to match, e.g. 'def' or 'send'.")


class CallHierarchyParams(FileParams):
    line: int = Field(..., ge=1, description="1-based line inside the callable.")


def _addressed(node_id: NodeId, node: Node) -> dict[str, Any]:
    return {"id": str(node_id), **node.to_dict()}


# =============================================================================
# Handlers
# =============================================================================


@registry.register("list_files", "List every indexed file path.", EmptyParams)
def list_files(engine: "StructuralQueryEngine", _params: EmptyParams) -> dict[str, Any]:
    return {"files": engine.list_files()}


@registry.register("status", "Report index liveness and row counts.", EmptyParams)
def status(engine: "StructuralQueryEngine", _params: EmptyParams) -> dict[str, Any]:
    return engine.status().to_dict()


@registry.register(
    "get_symbols",
    "List the classes, modules and methods defined in a file, in source order.",
    FileParams,
)
def get_symbols(engine: "StructuralQueryEngine", params: FileParams) -> dict[str, Any]:
    return {"symbols": [s.to_dict() for s in engine.get_symbols(params.file_path)]}


@registry.register("get_tree", "Return the full syntax tree of a file.", FileParams)
def get_tree(engine: "StructuralQueryEngine", params: FileParams) -> dict[str, Any]:
    return engine.get_tree(params.file_path).to_dict()


@registry.register(
    "query_nodes",
    "Find every node of a given kind in a file, with its address.",
    QueryNodesParams,
)
def query_nodes(engine: "StructuralQueryEngine", params: QueryNodesParams) -> dict[str, Any]:
    matches = engine.query_nodes(params.file_path, params.type)
    return {"nodes": [_addressed(node_id, node) for node_id, node in matches]}


@registry.register("get_node_details", "Return the node at an address.", NodeParams)
def get_node_details(engine: "StructuralQueryEngine", params: NodeParams) -> dict[str, Any]:
    node = engine.get_node_details(params.file_path, params.node_id)
    return {"node": _addressed(NodeId.parse(params.node_id) or NodeId(), node)}


@registry.register(
    "get_ancestors",
    "Return the enclosing nodes of an address, outermost first.",
    NodeParams,
)
def get_ancestors(engine: "StructuralQueryEngine", params: NodeParams) -> dict[str, Any]:
    ancestors = engine.get_ancestors(params.file_path, params.node_id)
    return {"ancestors": [_addressed(node_id, node) for node_id, node in ancestors]}


@registry.register(
    "find_definition",
    "Find every definition with a given name across the index.",
    NameParams,
)
def find_definition(engine: "StructuralQueryEngine", params: NameParams) -> dict[str, Any]:
    return {"definitions": [s.to_dict() for s in engine.find_definition(params.name)]}


@registry.register(
    "find_references",
    "Find every constant mention or call with a given name across the index.",
    NameParams,
)
def find_references(engine: "StructuralQueryEngine", params: NameParams) -> dict[str, Any]:
    return {"references": [r.to_dict() for r in engine.find_references(params.name)]}


@registry.register(
    "get_call_hierarchy",
    "Callers and callees of the method enclosing a line.",
    CallHierarchyParams,
)
def get_call_hierarchy(
    engine: "StructuralQueryEngine", params: CallHierarchyParams
) -> dict[str, Any]:
    return engine.get_call_hierarchy(params.file_path, params.line).to_dict()
