"""Data models for dependency collection results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MissingReason(Enum):
    """Why a referenced name did not become a visited node."""

    ENTRY_NOT_FOUND = "entry not found in manifest"
    NO_CONTRACT = "no contract found for referenced name"
    CONTRACT_NOT_LOADED = "contract not loaded"


@dataclass
class MissingDependency:
    """A reference that could not be resolved to a known component."""

    name: str
    reason: MissingReason
    referenced_by: str | None = None  # absent only for a missing entry point
    package_name: str | None = None
    package_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "reason": self.reason.value}
        if self.referenced_by is not None:
            out["referencedBy"] = self.referenced_by
        if self.package_name is not None:
            out["packageName"] = self.package_name
        if self.package_version is not None:
            out["packageVersion"] = self.package_version
        return out


@dataclass
class CollectionResult:
    """Outcome of one bounded BFS from an entry point."""

    entry_id: str
    max_depth: int
    max_nodes: int
    visited: dict[str, int] = field(default_factory=dict)  # canonical id -> BFS level
    missing: list[MissingDependency] = field(default_factory=list)
    truncated: bool = False  # traversal stopped at max_nodes with work left

    @property
    def visited_ids(self) -> list[str]:
        """Visited ids in BFS order."""
        return list(self.visited)

    def missing_names(self) -> list[str]:
        return [m.name for m in self.missing]
