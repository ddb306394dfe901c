"""Structural queries against a built index.

File-local queries (tree, node lookup, find-by-type, ancestors) load the
file's stored tree and use the addressing primitives. Cross-file queries
(definitions, references, call hierarchy) read the symbol and reference
tables. Resolution is by name only: ``find_definition("save")`` returns every
``save`` in the index regardless of the class it lives in.

The engine never writes. A later build swaps the database file underneath;
the engine notices the new file on its next query, reopens it and drops its
cached trees.

Usage::

    engine = StructuralQueryEngine.open(Path(".astplane/index.db"))
    for node_id, node in engine.query_nodes("dog.rb", "def"):
        ...
    hierarchy = engine.get_call_hierarchy("cat.rb", 12)
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from sqlmodel import select

from astplane.core.errors import NotFoundError
from astplane.index._internal.db import Database
from astplane.index._internal.tree import AddressableTree, Location, Node, NodeId
from astplane.index.models import (
    File,
    Reference,
    ReferenceRecord,
    Symbol,
    SymbolKind,
    SymbolRecord,
)

log = structlog.get_logger(__name__)

TREE_CACHE_MAX_ENTRIES = 128


@dataclass(frozen=True)
class OutboundCall:
    """A distinct method called from inside a callable."""

    name: str
    line: int | None  # First call site

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "line": self.line}


@dataclass
class CallHierarchy:
    """Callers and callees of one callable, resolved by name."""

    symbol: SymbolRecord
    inbound: list[ReferenceRecord]
    outbound: list[OutboundCall]

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol.to_dict(),
            "inbound": [r.to_dict() for r in self.inbound],
            "outbound": [c.to_dict() for c in self.outbound],
        }


@dataclass
class IndexStatus:
    db_path: str
    files: int
    symbols: int
    references: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "db_path": self.db_path,
            "files": self.files,
            "symbols": self.symbols,
            "references": self.references,
        }


class StructuralQueryEngine:
    """Read-only query surface over one index database."""

    def __init__(self, db: Database, *, max_cached_trees: int = TREE_CACHE_MAX_ENTRIES) -> None:
        self.db = db
        self._db_stamp = _file_stamp(db.db_path)
        self._trees: OrderedDict[str, AddressableTree] = OrderedDict()
        self._max_trees = max_cached_trees

    @classmethod
    def open(cls, db_path: Path) -> StructuralQueryEngine:
        """Open an existing index.

        Raises:
            NotFoundError: No database exists at ``db_path``.
        """
        if not db_path.is_file():
            raise NotFoundError.index(str(db_path))
        return cls(Database(db_path))

    def close(self) -> None:
        self._trees.clear()
        self.db.dispose()

    # ------------------------------------------------------------------
    # File-local queries
    # ------------------------------------------------------------------

    def list_files(self) -> list[str]:
        with self._current_db().session() as session:
            return list(session.exec(select(File.file_path).order_by(File.file_path)).all())

    def status(self) -> IndexStatus:
        counts = self._current_db().table_counts()
        return IndexStatus(
            db_path=str(self.db.db_path),
            files=counts["files"],
            symbols=counts["symbols"],
            references=counts["references"],
        )

    def get_symbols(self, file_path: str) -> list[SymbolRecord]:
        """All symbols of a file, in extraction order."""
        with self._current_db().session() as session:
            file = self._get_file(session, file_path)
            rows = session.exec(
                select(Symbol).where(Symbol.file_id == file.id).order_by(Symbol.id)  # type: ignore[arg-type]
            ).all()
            return [SymbolRecord.from_row(row, file_path) for row in rows]

    def get_tree(self, file_path: str) -> Node:
        return self._tree(file_path).root

    def query_nodes(self, file_path: str, kind: str) -> list[tuple[NodeId, Node]]:
        """Every node of ``kind`` in the file, pre-order."""
        return list(self._tree(file_path).find_by_type(kind))

    def get_node_details(self, file_path: str, node_id: str) -> Node:
        node = self._tree(file_path).lookup(node_id)
        if node is None:
            raise NotFoundError.node(file_path, node_id)
        return node

    def get_ancestors(self, file_path: str, node_id: str) -> list[tuple[NodeId, Node]]:
        """Ancestors of a node, root first."""
        tree = self._tree(file_path)
        if tree.lookup(node_id) is None:
            raise NotFoundError.node(file_path, node_id)
        return tree.ancestors_of(node_id)

    # ------------------------------------------------------------------
    # Cross-file queries
    # ------------------------------------------------------------------

    def find_definition(self, name: str) -> list[SymbolRecord]:
        """Every symbol named ``name``, in any file."""
        with self._current_db().session() as session:
            rows = session.exec(
                select(Symbol, File.file_path)
                .join(File, Symbol.file_id == File.id)  # type: ignore[arg-type]
                .where(Symbol.name == name)
                .order_by(Symbol.id)  # type: ignore[arg-type]
            ).all()
            return [SymbolRecord.from_row(row, path) for row, path in rows]

    def find_references(self, name: str) -> list[ReferenceRecord]:
        """Every reference named ``name``, in any file."""
        with self._current_db().session() as session:
            rows = session.exec(
                select(Reference, File.file_path)
                .join(File, Reference.file_id == File.id)  # type: ignore[arg-type]
                .where(Reference.symbol_name == name)
                .order_by(Reference.id)  # type: ignore[arg-type]
            ).all()
            return [ReferenceRecord.from_row(row, path) for row, path in rows]

    def get_call_hierarchy(self, file_path: str, line: int) -> CallHierarchy:
        """Callers and callees of the innermost callable spanning ``line``.

        Raises:
            NotFoundError: The file is not indexed or no callable spans the line.
        """
        symbol = self._enclosing_callable(file_path, line)
        inbound = self.find_references(symbol.name)
        outbound = _distinct_calls(symbol.subtree)
        log.debug(
            "call_hierarchy_resolved",
            file_path=file_path,
            line=line,
            symbol=symbol.name,
            inbound=len(inbound),
            outbound=len(outbound),
        )
        return CallHierarchy(symbol=symbol, inbound=inbound, outbound=outbound)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_file(self, session: Any, file_path: str) -> File:
        file = session.exec(select(File).where(File.file_path == file_path)).first()
        if file is None:
            raise NotFoundError.file(file_path)
        return file  # type: ignore[no-any-return]

    def _current_db(self) -> Database:
        """The open database, reopened first if a build has replaced the file."""
        stamp = _file_stamp(self.db.db_path)
        if stamp != self._db_stamp:
            log.info("index_reopened", db_path=str(self.db.db_path))
            self._trees.clear()
            self.db.dispose()
            self.db = Database(self.db.db_path)
            self._db_stamp = stamp
        return self.db

    def _tree(self, file_path: str) -> AddressableTree:
        db = self._current_db()
        tree = self._trees.get(file_path)
        if tree is not None:
            self._trees.move_to_end(file_path)
            return tree

        with db.session() as session:
            file = self._get_file(session, file_path)
            tree = AddressableTree(Node.from_json(file.root_tree))
        self._trees[file_path] = tree
        # Evict least recently used
        while len(self._trees) > self._max_trees:
            self._trees.popitem(last=False)
        return tree

    def _enclosing_callable(self, file_path: str, line: int) -> SymbolRecord:
        callable_kinds = [k.value for k in SymbolKind.callable_kinds()]
        with self._current_db().session() as session:
            file = self._get_file(session, file_path)
            rows = session.exec(
                select(Symbol)
                .where(Symbol.file_id == file.id)
                .where(Symbol.kind.in_(callable_kinds))  # type: ignore[attr-defined]
                .where(Symbol.start_line <= line)  # type: ignore[operator]
                .where(Symbol.end_line >= line)  # type: ignore[operator]
                .order_by(Symbol.id)  # type: ignore[arg-type]
            ).all()

            best: Symbol | None = None
            best_span = 0
            for row in rows:
                span = Location(row.start_line or line, row.end_line or line).span
                # Strict comparison keeps the earliest row on ties
                if best is None or span < best_span:
                    best, best_span = row, span
            if best is None:
                raise NotFoundError.callable_at_line(file_path, line)
            return SymbolRecord.from_row(best, file_path)


def _distinct_calls(subtree: dict[str, Any] | None) -> list[OutboundCall]:
    """Call names inside a stored callable subtree, first occurrence order."""
    if subtree is None:
        return []
    tree = AddressableTree(Node.from_dict(subtree))
    seen: dict[str, OutboundCall] = {}
    for _, call in tree.outbound_calls():
        name = call.child(1)
        if isinstance(name, str) and name not in seen:
            seen[name] = OutboundCall(name=name, line=call.start_line)
    return list(seen.values())


def _file_stamp(db_path: Path) -> tuple[int, int]:
    """Identity of the database file; changes when a build swaps it in."""
    if not db_path.is_file():
        raise NotFoundError.index(str(db_path))
    stat = db_path.stat()
    return stat.st_ino, stat.st_mtime_ns
