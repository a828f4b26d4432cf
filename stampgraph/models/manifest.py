"""Manifest data models: the whole-project dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stampgraph.resolver import AmbiguousResolution, Resolver

MANIFEST_VERSION = "0.3"


@dataclass
class ComponentNode:
    """One graph node, owned by the ProjectManifest that created it.

    ``dependencies`` are outgoing edges by *name* (unresolved);
    ``used_by`` are incoming edges by canonical id.
    """

    entry_id: str
    description: str = ""
    dependencies: list[str] = field(default_factory=list)
    used_by: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    routes: list[str] = field(default_factory=list)
    semantic_hash: str = ""
    structure_hash: str | None = None
    signature_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "entryId": self.entry_id,
            "description": self.description,
            "dependencies": list(self.dependencies),
            "usedBy": list(self.used_by),
            "imports": list(self.imports),
            "routes": list(self.routes),
            "semanticHash": self.semantic_hash,
        }
        if self.structure_hash is not None:
            out["structureHash"] = self.structure_hash
        if self.signature_hash is not None:
            out["signatureHash"] = self.signature_hash
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComponentNode:
        return cls(
            entry_id=data["entryId"],
            description=data.get("description", ""),
            dependencies=list(data.get("dependencies") or []),
            used_by=list(data.get("usedBy") or []),
            imports=list(data.get("imports") or []),
            routes=list(data.get("routes") or []),
            semantic_hash=data.get("semanticHash", ""),
            structure_hash=data.get("structureHash"),
            signature_hash=data.get("signatureHash"),
        )


@dataclass
class HashIndex:
    """hash value -> ids sharing it. Used for similarity, never for identity."""

    structure: dict[str, list[str]] = field(default_factory=dict)
    signature: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {
            "structureHash": {k: list(v) for k, v in self.structure.items()},
            "signatureHash": {k: list(v) for k, v in self.signature.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HashIndex:
        return cls(
            structure={k: list(v) for k, v in (data.get("structureHash") or {}).items()},
            signature={k: list(v) for k, v in (data.get("signatureHash") or {}).items()},
        )


@dataclass
class ProjectManifest:
    """Whole-project dependency graph.

    Treated as immutable once ``build_manifest`` returns it; collectors may
    share one instance without locking.
    """

    components: dict[str, ComponentNode]
    roots: list[str] = field(default_factory=list)
    leaves: list[str] = field(default_factory=list)
    hash_index: HashIndex | None = None
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )
    version: str = MANIFEST_VERSION
    resolution_warnings: list[AmbiguousResolution] = field(default_factory=list)

    @property
    def total_components(self) -> int:
        return len(self.components)

    @cached_property
    def resolver(self) -> Resolver:
        from stampgraph.resolver import Resolver

        return Resolver(self.components)

    def isolated(self) -> list[str]:
        """Ids that are both roots and leaves."""
        leaves = set(self.leaves)
        return [cid for cid in self.roots if cid in leaves]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "version": self.version,
            "generatedAt": self.generated_at,
            "totalComponents": self.total_components,
            "components": {key: node.to_dict() for key, node in self.components.items()},
            "graph": {"roots": list(self.roots), "leaves": list(self.leaves)},
        }
        if self.hash_index is not None:
            out["hashIndex"] = self.hash_index.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectManifest:
        graph = data.get("graph") or {}
        hash_index = data.get("hashIndex")
        return cls(
            components={
                key: ComponentNode.from_dict(node)
                for key, node in (data.get("components") or {}).items()
            },
            roots=list(graph.get("roots") or []),
            leaves=list(graph.get("leaves") or []),
            hash_index=HashIndex.from_dict(hash_index) if hash_index else None,
            generated_at=data.get("generatedAt", ""),
            version=data.get("version", MANIFEST_VERSION),
        )
