"""Comparator: detect semantic drift between two bundle snapshots.

Every node of every bundle is flattened into one index keyed by the
lower-cased ``entryId``. Two indices are then compared component by
component on four independent signals: semantic hash, import list, hook
list and export kind. Any difference means DRIFT; a CI gate maps DRIFT to a
non-zero exit.

:func:`compare_indices` applies the same comparison per folder across two
project indices (``context_main.json``) and classifies folders as PASS,
DRIFT, ADDED or ORPHANED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping

import structlog

from stampgraph.exceptions import StampGraphError
from stampgraph.loader import load_bundles, load_index
from stampgraph.models.contract import ExportKind, Exports

log = structlog.get_logger("stampgraph.comparator")


class CompareStatus(Enum):
    PASS = "PASS"
    DRIFT = "DRIFT"


class DeltaType(Enum):
    HASH = "hash"
    IMPORTS = "imports"
    HOOKS = "hooks"
    EXPORTS = "exports"


@dataclass(frozen=True)
class LiteSignature:
    """The reduced view of a contract that drift detection looks at."""

    semantic_hash: str
    imports: tuple[str, ...]
    hooks: tuple[str, ...]
    export_kind: ExportKind

    @classmethod
    def from_contract(cls, contract: Mapping[str, Any]) -> LiteSignature:
        composition = contract.get("composition", contract.get("version")) or {}
        return cls(
            semantic_hash=str(contract.get("semanticHash") or ""),
            imports=tuple(composition.get("imports") or ()),
            hooks=tuple(composition.get("hooks") or ()),
            export_kind=Exports.from_value(contract.get("exports")).kind,
        )


@dataclass
class Delta:
    type: DeltaType
    old: Any
    new: Any

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "old": self.old, "new": self.new}


@dataclass
class ChangedComponent:
    id: str
    deltas: list[Delta]

    @property
    def delta_types(self) -> list[str]:
        return [d.type.value for d in self.deltas]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "deltas": [d.to_dict() for d in self.deltas]}


@dataclass
class CompareResult:
    status: CompareStatus
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: list[ChangedComponent] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status is CompareStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "added": list(self.added),
            "removed": list(self.removed),
            "changed": [c.to_dict() for c in self.changed],
        }


@dataclass
class BundleIndex:
    """lower-cased entry id -> LiteSignature for one snapshot.

    Ids that appear in more than one bundle (after lower-casing) keep the
    last bundle's entry; each overwrite is listed in ``collisions``.
    """

    entries: dict[str, LiteSignature] = field(default_factory=dict)
    collisions: list[str] = field(default_factory=list)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def index_bundles(bundles: Iterable[Mapping[str, Any]]) -> BundleIndex:
    index = BundleIndex()
    for bundle in bundles:
        graph = bundle.get("graph") or {}
        for node in graph.get("nodes") or []:
            contract = node.get("contract") or {}
            entry_id = contract.get("entryId") or node.get("entryId")
            if not entry_id:
                continue
            key = str(entry_id).lower()
            if key in index.entries:
                index.collisions.append(key)
            index.entries[key] = LiteSignature.from_contract(contract)
    if index.collisions:
        log.debug("comparator.collisions", ids=sorted(set(index.collisions)))
    return index


def diff(old: BundleIndex, new: BundleIndex) -> CompareResult:
    added = sorted(i for i in new.entries if i not in old.entries)
    removed = sorted(i for i in old.entries if i not in new.entries)

    changed: list[ChangedComponent] = []
    for entry_id in sorted(i for i in new.entries if i in old.entries):
        deltas = _deltas(old.entries[entry_id], new.entries[entry_id])
        if deltas:
            changed.append(ChangedComponent(id=entry_id, deltas=deltas))

    status = CompareStatus.PASS if not (added or removed or changed) else CompareStatus.DRIFT
    return CompareResult(status=status, added=added, removed=removed, changed=changed)


def _deltas(a: LiteSignature, b: LiteSignature) -> list[Delta]:
    deltas: list[Delta] = []
    if a.semantic_hash != b.semantic_hash:
        deltas.append(Delta(DeltaType.HASH, a.semantic_hash, b.semantic_hash))
    if a.imports != b.imports:
        deltas.append(Delta(DeltaType.IMPORTS, list(a.imports), list(b.imports)))
    if a.hooks != b.hooks:
        deltas.append(Delta(DeltaType.HOOKS, list(a.hooks), list(b.hooks)))
    if a.export_kind is not b.export_kind:
        deltas.append(Delta(DeltaType.EXPORTS, a.export_kind.value, b.export_kind.value))
    return deltas


def compare_bundles(
    old_bundles: Iterable[Mapping[str, Any]],
    new_bundles: Iterable[Mapping[str, Any]],
) -> CompareResult:
    """Index both snapshots and diff them."""
    return diff(index_bundles(old_bundles), index_bundles(new_bundles))


# ── Project index (multi-folder) comparison ──


class FolderStatus(Enum):
    PASS = "PASS"
    DRIFT = "DRIFT"
    ADDED = "ADDED"
    ORPHANED = "ORPHANED"


@dataclass
class FolderCompareResult:
    """One folder's context file; ``result`` is None for ADDED/ORPHANED or a failed read."""

    folder_path: str
    context_file: str
    status: FolderStatus
    result: CompareResult | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "folderPath": self.folder_path,
            "contextFile": self.context_file,
            "status": self.status.value,
        }
        if self.result is not None:
            out["componentResult"] = self.result.to_dict()
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class IndexCompareResult:
    status: CompareStatus
    folders: list[FolderCompareResult] = field(default_factory=list)
    components_added: int = 0
    components_removed: int = 0
    components_changed: int = 0
    orphaned_files: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status is CompareStatus.PASS

    def count(self, status: FolderStatus) -> int:
        return sum(1 for f in self.folders if f.status is status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "folders": [f.to_dict() for f in self.folders],
            "summary": {
                "totalFolders": len(self.folders),
                "addedFolders": self.count(FolderStatus.ADDED),
                "orphanedFolders": self.count(FolderStatus.ORPHANED),
                "driftFolders": self.count(FolderStatus.DRIFT),
                "passFolders": self.count(FolderStatus.PASS),
                "totalComponentsAdded": self.components_added,
                "totalComponentsRemoved": self.components_removed,
                "totalComponentsChanged": self.components_changed,
            },
            "orphanedFiles": list(self.orphaned_files),
        }


def compare_indices(old_index_path: str | Path, new_index_path: str | Path) -> IndexCompareResult:
    """Compare two project indices folder by folder.

    Each index lists folders with the context file holding their bundles,
    relative to the index's own directory. Folders present in both are
    diffed with :func:`compare_bundles`; a context file that cannot be read
    marks its folder DRIFT. New folders are ADDED, vanished ones ORPHANED,
    and their bundle counts go into the component totals. Old context files
    that left the index but still exist on disk are listed in
    ``orphaned_files``. Raises :class:`DocumentLoadError` if either index is
    unreadable.
    """
    old_index_path, new_index_path = Path(old_index_path), Path(new_index_path)
    old_base, new_base = old_index_path.parent, new_index_path.parent
    old_folders = _folders_by_context_file(load_index(old_index_path))
    new_folders = _folders_by_context_file(load_index(new_index_path))

    result = IndexCompareResult(status=CompareStatus.PASS)
    for context_file in {**old_folders, **new_folders}:
        old = old_folders.get(context_file)
        new = new_folders.get(context_file)

        if old is not None and new is not None:
            result.folders.append(
                _compare_folder(new, old_base / context_file, new_base / context_file, result)
            )
        elif new is not None:
            result.folders.append(
                FolderCompareResult(_folder_path(new), context_file, FolderStatus.ADDED)
            )
            result.components_added += _bundle_count(new)
        elif old is not None:
            result.folders.append(
                FolderCompareResult(_folder_path(old), context_file, FolderStatus.ORPHANED)
            )
            result.components_removed += _bundle_count(old)

    result.folders.sort(key=lambda f: f.folder_path)
    result.orphaned_files = sorted(
        cf for cf in old_folders if cf not in new_folders and (old_base / cf).is_file()
    )
    if any(f.status is not FolderStatus.PASS for f in result.folders):
        result.status = CompareStatus.DRIFT
    return result


def _compare_folder(
    folder: Mapping[str, Any], old_path: Path, new_path: Path, totals: IndexCompareResult
) -> FolderCompareResult:
    context_file = str(folder["contextFile"])
    try:
        diffed = compare_bundles(load_bundles(old_path), load_bundles(new_path))
    except StampGraphError as e:
        log.warning("comparator.folder_failed", context_file=context_file, error=str(e))
        return FolderCompareResult(
            _folder_path(folder), context_file, FolderStatus.DRIFT, error=str(e)
        )

    if not diffed.passed:
        totals.components_added += len(diffed.added)
        totals.components_removed += len(diffed.removed)
        totals.components_changed += len(diffed.changed)
    status = FolderStatus.PASS if diffed.passed else FolderStatus.DRIFT
    return FolderCompareResult(_folder_path(folder), context_file, status, result=diffed)


def _folders_by_context_file(index: Mapping[str, Any]) -> dict[str, Mapping[str, Any]]:
    return {
        str(folder["contextFile"]): folder
        for folder in index["folders"]
        if isinstance(folder, Mapping) and folder.get("contextFile")
    }


def _folder_path(folder: Mapping[str, Any]) -> str:
    return str(folder.get("path") or folder["contextFile"])


def _bundle_count(folder: Mapping[str, Any]) -> int:
    bundles = folder.get("bundles")
    return bundles if isinstance(bundles, int) else 0
