"""Deterministic node addressing over one file's tree.

A NodeId is the path of child indices from the root, written as
``root.children.0.children.2``. Addressing is a pure function of child
position, so re-reading an unchanged tree yields identical ids. Ids are only
meaningful against the tree they were produced from.

Usage::

    tree = AddressableTree(root)
    for node_id, node in tree.find_by_type("def"):
        assert tree.lookup(node_id) == node
        parents = tree.ancestors_of(node_id)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from astplane.config.constants import NODE_ID_CHILDREN, NODE_ID_ROOT, NODE_ID_SEPARATOR
from astplane.index._internal.tree.node import Node

CALL_KINDS = frozenset({"send", "csend"})


@dataclass(frozen=True, slots=True)
class NodeId:
    """Path from a tree's root to a node, as child indices."""

    path: tuple[int, ...] = ()

    @classmethod
    def from_path(cls, indices: Iterable[int]) -> NodeId:
        return cls(tuple(indices))

    @classmethod
    def parse(cls, text: str) -> NodeId | None:
        """Parse the textual form; None for anything malformed."""
        if not isinstance(text, str):
            return None
        parts = text.split(NODE_ID_SEPARATOR)
        if not parts or parts[0] != NODE_ID_ROOT:
            return None
        steps = parts[1:]
        if len(steps) % 2:
            return None
        indices: list[int] = []
        for marker, index in zip(steps[::2], steps[1::2], strict=True):
            if marker != NODE_ID_CHILDREN or not (index.isascii() and index.isdigit()):
                return None
            indices.append(int(index))
        return cls(tuple(indices))

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def is_root(self) -> bool:
        return not self.path

    @property
    def parent(self) -> NodeId | None:
        if self.is_root:
            return None
        return NodeId(self.path[:-1])

    def child(self, index: int) -> NodeId:
        return NodeId((*self.path, index))

    def prefixes(self) -> Iterator[NodeId]:
        """Strict prefixes, root first."""
        for length in range(len(self.path)):
            yield NodeId(self.path[:length])

    def __str__(self) -> str:
        segments = [NODE_ID_ROOT]
        for index in self.path:
            segments.append(NODE_ID_CHILDREN)
            segments.append(str(index))
        return NODE_ID_SEPARATOR.join(segments)


ROOT_ID = NodeId()


class AddressableTree:
    """Lookup, traversal and ancestor primitives over a single tree.

    Nothing here raises on bad input: unknown ids resolve to None and
    traversals over foreign nodes skip what they cannot identify.
    """

    def __init__(self, root: Node) -> None:
        self.root = root

    def lookup(self, node_id: NodeId | str) -> Node | None:
        """Replay ``node_id`` from the root. None if it does not land on a Node."""
        resolved = _coerce(node_id)
        if resolved is None:
            return None

        current: Node = self.root
        for index in resolved.path:
            if index >= len(current.children):
                return None
            child = current.children[index]
            if not isinstance(child, Node):
                return None
            current = child
        return current

    def walk(self, start: NodeId | str = ROOT_ID) -> Iterator[tuple[NodeId, Node]]:
        """Pre-order traversal of the subtree at ``start``, ids absolute.

        Untyped nodes are descended into but not yielded.
        """
        start_id = _coerce(start)
        if start_id is None:
            return
        start_node = self.lookup(start_id)
        if start_node is None:
            return

        stack: list[tuple[NodeId, Node]] = [(start_id, start_node)]
        while stack:
            node_id, node = stack.pop()
            if node.kind is not None:
                yield node_id, node
            # Reverse so the leftmost child is visited first
            stack.extend(
                (node_id.child(index), child) for index, child in reversed(list(node.child_nodes()))
            )

    def find_by_type(self, kind: str) -> Iterator[tuple[NodeId, Node]]:
        """Every node whose kind equals ``kind``, in pre-order.

        Each call starts a fresh traversal.
        """
        return (pair for pair in self.walk() if pair[1].kind == kind)

    def ancestors_of(self, node_id: NodeId | str) -> list[tuple[NodeId, Node]]:
        """Ancestors from the root down to the immediate parent (nearest last).

        Every prefix is included, untyped containers too, so the result has
        exactly ``depth_of(node_id)`` entries.
        """
        resolved = _coerce(node_id)
        if resolved is None or self.lookup(resolved) is None:
            return []

        ancestors: list[tuple[NodeId, Node]] = []
        for prefix in resolved.prefixes():
            node = self.lookup(prefix)
            if node is not None:
                ancestors.append((prefix, node))
        return ancestors

    def depth_of(self, node_id: NodeId | str) -> int | None:
        resolved = _coerce(node_id)
        if resolved is None or self.lookup(resolved) is None:
            return None
        return resolved.depth

    def outbound_calls(self, start: NodeId | str = ROOT_ID) -> Iterator[tuple[NodeId, Node]]:
        """Call-expression nodes inside the subtree at ``start``."""
        return (pair for pair in self.walk(start) if pair[1].kind in CALL_KINDS)


def _coerce(node_id: NodeId | str) -> NodeId | None:
    if isinstance(node_id, NodeId):
        return node_id
    return NodeId.parse(node_id)
