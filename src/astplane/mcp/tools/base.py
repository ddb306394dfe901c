"""Base classes for method parameters."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BaseParams(BaseModel):
    """Base class for all method parameters.

    Uses extra="forbid" to reject unknown fields with clear errors.
    """

    model_config = ConfigDict(extra="forbid")


class FileParams(BaseParams):
    file_path: str = Field(..., min_length=1, description="Path of an indexed file, as listed by list_files.")


class NodeParams(FileParams):
    node_id: str = Field(
        ...,
        min_length=1,
        description="Node address such as 'root.children.0.children.2'.",
    )


class NameParams(BaseParams):
    name: str = Field(..., min_length=1, description="Symbol name, matched exactly.")
