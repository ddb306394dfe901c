"""Generic syntax-tree node shared by the parser adapter, extractor and store.

A Node is immutable. Its ``children`` keep source order and may mix nested
Nodes with scalar literals (method names, string contents, numbers, ``None``),
the way the classic Ruby AST does::

    (def :bark (args) (str "Woof!"))

is ``Node("def", ("bark", Node("args"), Node("str", ("Woof!",))))``.

Wire form is ``{"type": kind, "children": [...], "location": {...}}``.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

Literal = Union[str, int, float, bool, None]
Child = Union["Node", Literal]


@dataclass(frozen=True, slots=True)
class Location:
    """1-based inclusive line span of a node."""

    start_line: int
    end_line: int

    @property
    def span(self) -> int:
        return self.end_line - self.start_line

    def to_dict(self) -> dict[str, int]:
        return {"start_line": self.start_line, "end_line": self.end_line}


@dataclass(frozen=True, slots=True)
class Node:
    """One syntax-tree element.

    ``kind`` is None for foreign nodes that carry no type; traversal still
    descends into their children but never reports them.
    """

    kind: str | None
    children: tuple[Child, ...] = ()
    location: Location | None = field(default=None, compare=False)

    def child_nodes(self) -> Iterator[tuple[int, Node]]:
        """Yield (index, child) for children that are Nodes."""
        for index, child in enumerate(self.children):
            if isinstance(child, Node):
                yield index, child

    def child(self, index: int) -> Child:
        """Child at ``index`` or None when out of range."""
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    @property
    def start_line(self) -> int | None:
        return self.location.start_line if self.location else None

    @property
    def end_line(self) -> int | None:
        return self.location.end_line if self.location else None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.kind,
            "children": [_child_to_wire(c) for c in self.children],
        }
        if self.location is not None:
            data["location"] = self.location.to_dict()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        """Build a tree from its wire form. Accepts ``type`` or ``kind`` keys."""
        kind = data.get("type", data.get("kind"))
        raw_children = data.get("children")
        children: tuple[Child, ...] = ()
        if isinstance(raw_children, list):
            children = tuple(_child_from_wire(c) for c in raw_children)

        location = None
        raw_location = data.get("location")
        if isinstance(raw_location, dict):
            start = raw_location.get("start_line")
            end = raw_location.get("end_line", start)
            if isinstance(start, int) and isinstance(end, int):
                location = Location(start, end)

        return cls(kind=str(kind) if kind is not None else None, children=children, location=location)

    @classmethod
    def from_json(cls, text: str) -> Node:
        return cls.from_dict(json.loads(text))


def _child_to_wire(child: Child) -> Any:
    if isinstance(child, Node):
        return child.to_dict()
    return child


def _child_from_wire(raw: Any) -> Child:
    if isinstance(raw, dict):
        return Node.from_dict(raw)
    if isinstance(raw, list):
        # Bare arrays inside children become untyped containers
        return Node(kind=None, children=tuple(_child_from_wire(c) for c in raw))
    return raw
