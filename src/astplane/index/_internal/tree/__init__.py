"""Addressable AST model: immutable nodes and path-based node ids."""

from astplane.index._internal.tree.addressing import (
    CALL_KINDS,
    ROOT_ID,
    AddressableTree,
    NodeId,
)
from astplane.index._internal.tree.node import Child, Location, Node

__all__ = [
    "AddressableTree",
    "CALL_KINDS",
    "Child",
    "Location",
    "Node",
    "NodeId",
    "ROOT_ID",
]
