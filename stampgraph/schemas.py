"""Bundle document schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ContractDocument(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str | None = None
    schema_version: str | None = Field(default=None, alias="schemaVersion")
    entry_id: str | None = Field(default=None, alias="entryId")
    semantic_hash: str | None = Field(default=None, alias="semanticHash")
    file_hash: str | None = Field(default=None, alias="fileHash")


class BundleNode(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    entry_id: str = Field(alias="entryId")
    contract: ContractDocument | None = None


class BundleGraph(BaseModel):
    nodes: list[BundleNode]
    edges: list[tuple[str, str]]


class MissingEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    reason: str
    referenced_by: str | None = Field(default=None, alias="referencedBy")
    package_name: str | None = Field(default=None, alias="packageName")
    package_version: str | None = Field(default=None, alias="packageVersion")


class BundleMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    missing: list[MissingEntry]
    source: str | None = None
    truncated: bool = False
