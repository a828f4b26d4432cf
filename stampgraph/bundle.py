"""Bundle packer: assemble a collected subgraph into a bundle document."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import structlog

from stampgraph import __version__
from stampgraph.collector import collect
from stampgraph.exceptions import ComponentNotFoundError, MissingContractError
from stampgraph.hashing import BUNDLE_SCHEMA_VERSION, bundle_hash
from stampgraph.models.collection import MissingDependency, MissingReason
from stampgraph.models.contract import Contract
from stampgraph.models.manifest import ProjectManifest
from stampgraph.packages import PackageClassifier
from stampgraph.paths import normalize_entry_id

log = structlog.get_logger("stampgraph.bundle")

BUNDLE_TYPE = "LogicStampBundle"
PACKAGE_SOURCE = f"stampgraph@{__version__}"
_SUGGESTION_LIMIT = 5


def build_edges(node_ids: list[str], manifest: ProjectManifest) -> list[tuple[str, str]]:
    """Dependency edges whose both ends are packed, sorted lexicographically."""
    packed = set(node_ids)
    edges: set[tuple[str, str]] = set()
    for node_id in node_ids:
        node = manifest.components.get(node_id)
        if node is None:
            continue
        for dependency in node.dependencies:
            target = manifest.resolver.resolve(dependency, node_id)
            if target is not None and target in packed:
                edges.add((node_id, target))
    return sorted(edges)


def compute_bundle_hash(nodes: list[dict[str, Any]], depth: int) -> str:
    return bundle_hash(
        ({"entryId": n["entryId"], "semanticHash": n["contract"].get("semanticHash", "")}
         for n in nodes),
        depth,
    )


async def pack_bundle(
    entry_id: str,
    manifest: ProjectManifest,
    contracts: Mapping[str, Contract],
    *,
    depth: int,
    max_nodes: int,
    project_root: str | Path | None = None,
    allow_missing: bool = False,
    strict: bool = False,
    classifier: PackageClassifier | None = None,
) -> dict[str, Any]:
    """Collect *entry_id*'s subgraph and return the bundle document.

    *contracts* maps manifest keys to their contracts. A visited node with
    no contract raises :class:`MissingContractError` when *strict*;
    otherwise it is left out of the bundle and, unless *allow_missing*,
    reported in ``meta.missing``.
    """
    key = manifest.resolver.resolve(normalize_entry_id(entry_id))
    if key is None:
        keys = list(manifest.components)
        raise ComponentNotFoundError(entry_id, keys[:_SUGGESTION_LIMIT], total=len(keys))

    result = await collect(
        key,
        manifest,
        depth,
        max_nodes,
        project_root=project_root,
        classifier=classifier,
    )
    missing: list[MissingDependency] = list(result.missing)

    nodes: list[dict[str, Any]] = []
    for node_id in result.visited:
        contract = contracts.get(node_id)
        if contract is None:
            if strict:
                raise MissingContractError(node_id)
            if not allow_missing:
                missing.append(
                    MissingDependency(name=node_id, reason=MissingReason.CONTRACT_NOT_LOADED)
                )
            continue
        nodes.append({"entryId": node_id, "contract": contract.document()})

    if not nodes:
        # No visited node had a contract to embed.
        raise MissingContractError(key)

    nodes.sort(key=lambda n: n["entryId"])
    edges = build_edges([n["entryId"] for n in nodes], manifest)

    if result.truncated:
        log.info("bundle.truncated", entry_id=key, max_nodes=max_nodes)

    return {
        "type": BUNDLE_TYPE,
        "schemaVersion": BUNDLE_SCHEMA_VERSION,
        "entryId": key,
        "depth": depth,
        "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "bundleHash": compute_bundle_hash(nodes, depth),
        "graph": {"nodes": nodes, "edges": [list(e) for e in edges]},
        "meta": {
            "missing": [m.to_dict() for m in missing],
            "source": PACKAGE_SOURCE,
            "truncated": result.truncated,
        },
    }
