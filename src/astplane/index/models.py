"""SQLModel definitions for the structural index.

Single source of truth for the table schemas. A build writes all three tables
once; queries only read them.

Tables:
- files: one row per indexed source file, holding its lowered tree as JSON
- symbols: named definitions (classes, modules, methods) with their scope
- references: constant mentions and call sites, matched by name only
"""

import json
from enum import Enum
from typing import Any

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlmodel import Field, Relationship, SQLModel

# ============================================================================
# ENUMS
# ============================================================================


class SymbolKind(str, Enum):
    """What a symbol row describes."""

    TYPE = "type"  # class, module
    CALLABLE = "callable"  # def
    SINGLETON_CALLABLE = "singleton_callable"  # def self.x / def Const.x

    @classmethod
    def callable_kinds(cls) -> "frozenset[SymbolKind]":
        return frozenset({cls.CALLABLE, cls.SINGLETON_CALLABLE})


# AST node kinds that open a definition
TYPE_NODE_KINDS = {"class": SymbolKind.TYPE, "module": SymbolKind.TYPE}
CALLABLE_NODE_KINDS = {"def": SymbolKind.CALLABLE, "defs": SymbolKind.SINGLETON_CALLABLE}

# AST node kinds recorded as references
REFERENCE_NODE_KINDS = frozenset({"const", "send", "csend"})


# ============================================================================
# TABLES
# ============================================================================


class File(SQLModel, table=True):
    """Indexed source file and its stored tree."""

    __tablename__ = "files"

    id: int | None = Field(default=None, primary_key=True)
    file_path: str = Field(unique=True, index=True)
    root_tree: str = Field(sa_column=Column(Text, nullable=False))  # Node JSON
    line_count: int | None = None

    # Relationships
    symbols: list["Symbol"] = Relationship(back_populates="file")
    references: list["Reference"] = Relationship(back_populates="file")


class Symbol(SQLModel, table=True):
    """Named definition extracted from a file."""

    __tablename__ = "symbols"

    id: int | None = Field(default=None, primary_key=True)
    file_id: int = Field(
        sa_column=Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), index=True)
    )
    name: str = Field(index=True)
    kind: str = Field(index=True)  # SymbolKind value
    node_type: str  # class, module, def, defs
    scope: str  # Container names joined by "::", or "global"
    start_line: int | None = None
    end_line: int | None = None
    source_text: str | None = Field(default=None, sa_column=Column(Text))
    subtree: str | None = Field(default=None, sa_column=Column(Text))  # callables only

    # Relationships
    file: File | None = Relationship(back_populates="symbols")


class Reference(SQLModel, table=True):
    """Name-based usage of a constant or method."""

    __tablename__ = "references"

    id: int | None = Field(default=None, primary_key=True)
    file_id: int = Field(
        sa_column=Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), index=True)
    )
    symbol_name: str = Field(index=True)
    start_line: int | None = None
    end_line: int | None = None

    # Relationships
    file: File | None = Relationship(back_populates="references")


# ============================================================================
# NON-TABLE MODELS (Pydantic only, for data transfer)
# ============================================================================


class SymbolRecord(SQLModel):
    """Symbol as produced by extraction and returned by queries."""

    file_id: int | None = None
    file_path: str
    name: str
    kind: SymbolKind
    node_type: str
    scope: str
    start_line: int | None = None
    end_line: int | None = None
    source_text: str | None = None
    subtree: dict[str, Any] | None = None

    def to_row(self, file_id: int) -> dict[str, Any]:
        """Column values for a bulk insert into ``symbols``."""
        return {
            "file_id": file_id,
            "name": self.name,
            "kind": self.kind.value,
            "node_type": self.node_type,
            "scope": self.scope,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "source_text": self.source_text,
            "subtree": json.dumps(self.subtree, separators=(",", ":"))
            if self.subtree is not None
            else None,
        }

    @classmethod
    def from_row(cls, row: Symbol, file_path: str) -> "SymbolRecord":
        return cls(
            file_id=row.file_id,
            file_path=file_path,
            name=row.name,
            kind=SymbolKind(row.kind),
            node_type=row.node_type,
            scope=row.scope,
            start_line=row.start_line,
            end_line=row.end_line,
            source_text=row.source_text,
            subtree=json.loads(row.subtree) if row.subtree else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ReferenceRecord(SQLModel):
    """Reference as produced by extraction and returned by queries."""

    file_id: int | None = None
    file_path: str
    symbol_name: str
    start_line: int | None = None
    end_line: int | None = None

    def to_row(self, file_id: int) -> dict[str, Any]:
        """Column values for a bulk insert into ``references``."""
        return {
            "file_id": file_id,
            "symbol_name": self.symbol_name,
            "start_line": self.start_line,
            "end_line": self.end_line,
        }

    @classmethod
    def from_row(cls, row: Reference, file_path: str) -> "ReferenceRecord":
        return cls(
            file_id=row.file_id,
            file_path=file_path,
            symbol_name=row.symbol_name,
            start_line=row.start_line,
            end_line=row.end_line,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
