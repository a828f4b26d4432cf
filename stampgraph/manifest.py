"""Manifest builder: turns contracts into the project dependency graph."""

from __future__ import annotations

import errno
import json
from pathlib import Path
from typing import Any, Sequence

import structlog

from stampgraph.exceptions import ManifestLoadError, ManifestWriteError
from stampgraph.hashing import ContractHasher, Hasher
from stampgraph.models.contract import Contract
from stampgraph.models.manifest import ComponentNode, HashIndex, ProjectManifest
from stampgraph.resolver import AmbiguousResolution, Resolver

log = structlog.get_logger("stampgraph.manifest")

MANIFEST_FILENAME = "stampgraph.manifest.json"


class ManifestBuilder:
    """Two-pass graph construction.

    Pass 1 creates one node per contract; pass 2 resolves every dependency
    name and records the reverse edge on the target. Resolution runs only
    after all nodes exist, so whether an edge exists never depends on the
    contract order; only which of several same-named nodes wins does.
    """

    def __init__(self, hasher: Hasher | None = None) -> None:
        self._hasher = hasher or ContractHasher()

    def build(
        self,
        contracts: Sequence[Contract],
        include_hash_indices: bool = False,
    ) -> ProjectManifest:
        components: dict[str, ComponentNode] = {}

        # Pass 1: nodes
        for contract in contracts:
            if contract.entry_id in components:
                log.debug("manifest.contract_superseded", entry_id=contract.entry_id)
            components[contract.entry_id] = self._make_node(contract)

        # Pass 2: reverse edges
        resolver = Resolver(components)
        warnings: list[AmbiguousResolution] = []
        seen_ambiguous: set[tuple[str, str]] = set()
        for component_id, node in components.items():
            for dependency in node.dependencies:
                result = resolver.match(dependency, component_id)
                if result is None:
                    continue
                if result.ambiguous and (dependency, component_id) not in seen_ambiguous:
                    seen_ambiguous.add((dependency, component_id))
                    warnings.append(
                        AmbiguousResolution(
                            name=dependency,
                            referencing_id=component_id,
                            chosen=result.key,
                            candidates=result.candidates,
                        )
                    )
                    log.warning(
                        "resolver.ambiguous",
                        name=dependency,
                        referenced_by=component_id,
                        chosen=result.key,
                        candidates=list(result.candidates),
                    )
                target = components[result.key]
                if component_id not in target.used_by:
                    target.used_by.append(component_id)

        roots = sorted(cid for cid, n in components.items() if not n.used_by)
        leaves = sorted(cid for cid, n in components.items() if not n.dependencies)

        manifest = ProjectManifest(
            components=components,
            roots=roots,
            leaves=leaves,
            hash_index=build_hash_index(components) if include_hash_indices else None,
            resolution_warnings=warnings,
        )
        # Reuse the pass-2 index instead of rebuilding it on first lookup.
        manifest.resolver = resolver
        log.debug(
            "manifest.built",
            components=len(components),
            roots=len(roots),
            leaves=len(leaves),
            ambiguous=len(warnings),
        )
        return manifest

    def _make_node(self, contract: Contract) -> ComponentNode:
        return ComponentNode(
            entry_id=contract.entry_id,
            description=contract.description,
            dependencies=list(contract.composition.components),
            used_by=[],
            imports=list(contract.composition.imports),
            routes=list(contract.used_in),
            semantic_hash=contract.semantic_hash,
            structure_hash=self._hasher.structure_hash(contract.composition),
            signature_hash=self._hasher.signature_hash(contract.logic_signature),
        )


def build_manifest(
    contracts: Sequence[Contract],
    *,
    include_hash_indices: bool = False,
    hasher: Hasher | None = None,
) -> ProjectManifest:
    """Build the project manifest from *contracts* (no I/O)."""
    return ManifestBuilder(hasher).build(contracts, include_hash_indices=include_hash_indices)


def build_hash_index(components: dict[str, ComponentNode]) -> HashIndex:
    """Group ids by structure and signature hash, in manifest order per bucket."""
    index = HashIndex()
    for entry_id, node in components.items():
        if node.structure_hash:
            index.structure.setdefault(node.structure_hash, []).append(entry_id)
        if node.signature_hash:
            index.signature.setdefault(node.signature_hash, []).append(entry_id)
    return index


def find_similar(manifest: ProjectManifest, entry_id: str) -> dict[str, list[str]]:
    """Other components sharing *entry_id*'s structure or signature hash."""
    node = manifest.components.get(entry_id)
    if node is None:
        return {"structure": [], "signature": []}
    index = manifest.hash_index or build_hash_index(manifest.components)
    same_structure = index.structure.get(node.structure_hash or "", [])
    same_signature = index.signature.get(node.signature_hash or "", [])
    return {
        "structure": sorted(i for i in same_structure if i != entry_id),
        "signature": sorted(i for i in same_signature if i != entry_id),
    }


def generate_stats(manifest: ProjectManifest, limit: int = 10) -> dict[str, Any]:
    """Most used, most complex and isolated components."""
    items = list(manifest.components.items())
    most_used = sorted(
        ({"id": cid, "usageCount": len(n.used_by)} for cid, n in items),
        key=lambda s: s["usageCount"],
        reverse=True,
    )[:limit]
    most_complex = sorted(
        ({"id": cid, "dependencyCount": len(n.dependencies)} for cid, n in items),
        key=lambda s: s["dependencyCount"],
        reverse=True,
    )[:limit]
    isolated = [cid for cid, n in items if not n.used_by and not n.dependencies]
    return {"mostUsed": most_used, "mostComplex": most_complex, "isolated": isolated}


def write_manifest(manifest: ProjectManifest, out_dir: str | Path) -> Path:
    """Write ``stampgraph.manifest.json`` into *out_dir* and return its path."""
    path = Path(out_dir) / MANIFEST_FILENAME
    try:
        path.write_text(json.dumps(manifest.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        if e.errno == errno.ENOENT:
            message = f'Parent directory not found for: "{path}"'
        elif e.errno == errno.EACCES:
            message = f'Permission denied writing to: "{path}"'
        elif e.errno == errno.ENOSPC:
            message = f'No space left on device. Cannot write: "{path}"'
        else:
            message = f'Failed to write manifest "{path}": {e.strerror or e}'
        raise ManifestWriteError(message) from e
    log.info("manifest.written", path=str(path), components=manifest.total_components)
    return path


def load_manifest(base: str | Path) -> ProjectManifest:
    """Load a manifest from a file path or from a directory holding one."""
    path = Path(base)
    if path.is_dir():
        path = path / MANIFEST_FILENAME
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestLoadError(f"Failed to load manifest at {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestLoadError(f"Failed to load manifest at {path}: not a JSON object")
    try:
        return ProjectManifest.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ManifestLoadError(f"Malformed manifest at {path}: {e}") from e
