"""Collector: bounded breadth-first dependency collection from one entry point."""

from __future__ import annotations

from collections import deque
from pathlib import Path

import structlog

from stampgraph.models.collection import CollectionResult, MissingDependency, MissingReason
from stampgraph.models.manifest import ProjectManifest
from stampgraph.packages import PackageClassifier

log = structlog.get_logger("stampgraph.collector")


def collect_dependencies(
    entry_id: str,
    manifest: ProjectManifest,
    max_depth: int,
    max_nodes: int,
    classifier: PackageClassifier | None = None,
) -> CollectionResult:
    """Walk the manifest graph breadth-first from *entry_id*.

    Nodes are visited level by level; within a level they follow the
    dependency order of the contract that declared them. Once ``max_nodes``
    ids are visited the walk stops outright and ``truncated`` is set, so
    which nodes survive depends on traversal order, not importance.

    Unresolved dependency names are reported once each (first reason wins)
    with the package name filled in when the name looks like a package
    import. Versions are not looked up here; see :func:`collect`.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    if max_nodes < 1:
        raise ValueError(f"max_nodes must be >= 1, got {max_nodes}")

    classifier = classifier or PackageClassifier()
    resolver = manifest.resolver
    result = CollectionResult(entry_id=entry_id, max_depth=max_depth, max_nodes=max_nodes)
    missing_names: set[str] = set()
    queue: deque[tuple[str, int]] = deque([(entry_id, 0)])

    while queue:
        raw_id, level = queue.popleft()
        key = resolver.lookup_id(raw_id)
        canonical = key if key is not None else raw_id

        if canonical in result.visited or level > max_depth:
            continue

        if len(result.visited) >= max_nodes:
            result.truncated = True
            log.debug(
                "collector.truncated",
                entry_id=entry_id,
                max_nodes=max_nodes,
                dropped=len(queue) + 1,
            )
            break

        if key is None:
            # Only the seed can get here; dependency names go through the resolver.
            if raw_id not in missing_names:
                missing_names.add(raw_id)
                result.missing.append(
                    MissingDependency(name=raw_id, reason=MissingReason.ENTRY_NOT_FOUND)
                )
            continue

        result.visited[key] = level
        if level >= max_depth:
            continue

        for dependency in manifest.components[key].dependencies:
            resolved = resolver.resolve(dependency, key)
            if resolved is not None:
                if resolved not in result.visited:
                    queue.append((resolved, level + 1))
            elif dependency not in missing_names:
                missing_names.add(dependency)
                result.missing.append(
                    MissingDependency(
                        name=dependency,
                        reason=MissingReason.NO_CONTRACT,
                        referenced_by=key,
                        package_name=classifier.package_name(dependency),
                    )
                )

    return result


async def collect(
    entry_id: str,
    manifest: ProjectManifest,
    max_depth: int,
    max_nodes: int,
    project_root: str | Path | None = None,
    classifier: PackageClassifier | None = None,
) -> CollectionResult:
    """:func:`collect_dependencies` plus installed-version lookup for packages.

    Versions are looked up one missing dependency at a time. A failed lookup
    leaves ``package_version`` unset and never fails the collection.
    """
    classifier = classifier or PackageClassifier()
    result = collect_dependencies(entry_id, manifest, max_depth, max_nodes, classifier)
    if project_root is None:
        return result

    for missing in result.missing:
        if missing.package_name is None:
            continue
        try:
            missing.package_version = await classifier.get_version_async(
                missing.package_name, project_root
            )
        except Exception:
            log.debug(
                "packages.lookup_failed",
                package=missing.package_name,
                exc_info=True,
            )
    return result
