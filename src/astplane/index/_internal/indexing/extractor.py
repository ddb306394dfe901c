"""Symbol and reference extraction.

One pre-order walk over a file's lowered tree. The enclosing container names
travel down the recursion as an explicit tuple, so the scope recorded for a
symbol is exactly the stack of classes and modules around its definition::

    module M            -> M        scope "global"
      class C           -> C        scope "M"
        def f           -> f        scope "M::C"

Definitions:
- ``class`` / ``module`` produce a ``type`` symbol and push their name.
- ``def`` produces a ``callable``; ``defs`` a ``singleton_callable``. Both
  carry their source text and subtree. Neither pushes a scope.

References are recorded for ``const``, ``send`` and ``csend`` nodes, named by
the constant's last segment or the method name.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, field

import structlog
from pydantic import ValidationError

from astplane.config.constants import GLOBAL_SCOPE, SCOPE_SEPARATOR
from astplane.index._internal.tree import Node
from astplane.index.models import (
    CALLABLE_NODE_KINDS,
    REFERENCE_NODE_KINDS,
    TYPE_NODE_KINDS,
    ReferenceRecord,
    SymbolKind,
    SymbolRecord,
)

log = structlog.get_logger(__name__)

Scope = tuple[str, ...]


@dataclass
class Extraction:
    """Symbols and references of one file, in pre-order."""

    file_path: str
    symbols: list[SymbolRecord] = field(default_factory=list)
    references: list[ReferenceRecord] = field(default_factory=list)
    skipped_nodes: int = 0


def format_scope(scope: Scope) -> str:
    return SCOPE_SEPARATOR.join(scope) if scope else GLOBAL_SCOPE


def definition_name(node: Node) -> str:
    """Symbol name for a class/module/def/defs node.

    Raises:
        ValueError: The node does not carry a usable name.
    """
    if node.kind in TYPE_NODE_KINDS:
        name_node = node.child(0)
        if isinstance(name_node, Node) and isinstance(name_node.child(1), str):
            return str(name_node.child(1))
        raise ValueError(f"{node.kind} without a constant name")

    if node.kind == "def":
        name = node.child(0)
        if isinstance(name, str):
            return name
        raise ValueError("def without a method name")

    if node.kind == "defs":
        # Singleton methods are named self.<name> whatever the receiver
        name = node.child(1)
        if isinstance(name, str):
            return f"self.{name}"
        raise ValueError("defs without a method name")

    raise ValueError(f"{node.kind} is not a definition")


def reference_name(node: Node) -> str | None:
    """Name a const/send/csend node is referenced by; None if it has none."""
    name = node.child(1)
    return name if isinstance(name, str) else None


class SymbolExtractor:
    """Turn a lowered tree into SymbolRecords and ReferenceRecords.

    Stateless between calls; one instance can serve many files.
    """

    def __init__(self, *, store_source_text: bool = True) -> None:
        self.store_source_text = store_source_text

    def extract(self, file_path: str, root: Node, source: str | None = None) -> Extraction:
        result = Extraction(file_path=file_path)
        # Rows count "\n" only, as tree-sitter does
        lines = source.split("\n") if source is not None else []
        self._visit(root, (), result, lines)
        log.debug(
            "file_extracted",
            file_path=file_path,
            symbols=len(result.symbols),
            references=len(result.references),
            skipped_nodes=result.skipped_nodes,
        )
        return result

    def _visit(self, node: Node, scope: Scope, result: Extraction, lines: list[str]) -> None:
        inner_scope = scope
        try:
            inner_scope = self._record(node, scope, result, lines)
        except (ValueError, TypeError, ValidationError) as e:
            result.skipped_nodes += 1
            log.warning(
                "node_skipped",
                file_path=result.file_path,
                node_type=node.kind,
                line=node.start_line,
                error=str(e),
            )

        for _, child in node.child_nodes():
            self._visit(child, inner_scope, result, lines)

    def _record(self, node: Node, scope: Scope, result: Extraction, lines: list[str]) -> Scope:
        """Record whatever ``node`` defines or references; return the scope for its children."""
        kind = node.kind
        if kind in TYPE_NODE_KINDS:
            name = definition_name(node)
            result.symbols.append(self._symbol(node, name, TYPE_NODE_KINDS[kind], scope, result))
            return (*scope, name)

        if kind in CALLABLE_NODE_KINDS:
            name = definition_name(node)
            symbol = self._symbol(node, name, CALLABLE_NODE_KINDS[kind], scope, result)
            symbol.subtree = node.to_dict()
            if self.store_source_text:
                symbol.source_text = _source_slice(lines, node)
            result.symbols.append(symbol)
            return scope

        if kind in REFERENCE_NODE_KINDS:
            name = reference_name(node)
            if name is not None:
                result.references.append(
                    ReferenceRecord(
                        file_path=result.file_path,
                        symbol_name=name,
                        start_line=node.start_line,
                        end_line=node.end_line,
                    )
                )
        return scope

    @staticmethod
    def _symbol(
        node: Node, name: str, kind: SymbolKind, scope: Scope, result: Extraction
    ) -> SymbolRecord:
        return SymbolRecord(
            file_path=result.file_path,
            name=name,
            kind=kind,
            node_type=str(node.kind),
            scope=format_scope(scope),
            start_line=node.start_line,
            end_line=node.end_line,
        )


def _source_slice(lines: list[str], node: Node) -> str | None:
    if not lines or node.location is None:
        return None
    start, end = node.location.start_line, node.location.end_line
    if start < 1 or end < start:
        return None
    return textwrap.dedent("\n".join(lines[start - 1 : end]))
