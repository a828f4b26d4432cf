"""stampgraph: UI contract dependency graph, bundles and drift detection."""

__version__ = "0.1.0"

from stampgraph.bundle import pack_bundle
from stampgraph.collector import collect, collect_dependencies
from stampgraph.comparator import CompareResult, CompareStatus, compare_bundles, diff, index_bundles
from stampgraph.exceptions import (
    ComponentNotFoundError,
    DocumentLoadError,
    ManifestLoadError,
    ManifestWriteError,
    MissingContractError,
    StampGraphError,
)
from stampgraph.manifest import build_manifest, find_similar, load_manifest, write_manifest
from stampgraph.models import (
    CollectionResult,
    ComponentNode,
    Contract,
    MissingDependency,
    MissingReason,
    ProjectManifest,
)
from stampgraph.packages import PackageClassifier
from stampgraph.resolver import Resolver, resolve_dependency, resolve_key
from stampgraph.validator import ValidationReport, validate_bundles

__all__ = [
    "CollectionResult",
    "CompareResult",
    "CompareStatus",
    "ComponentNode",
    "ComponentNotFoundError",
    "Contract",
    "DocumentLoadError",
    "ManifestLoadError",
    "ManifestWriteError",
    "MissingContractError",
    "MissingDependency",
    "MissingReason",
    "PackageClassifier",
    "ProjectManifest",
    "Resolver",
    "StampGraphError",
    "ValidationReport",
    "build_manifest",
    "collect",
    "collect_dependencies",
    "compare_bundles",
    "diff",
    "find_similar",
    "index_bundles",
    "load_manifest",
    "pack_bundle",
    "resolve_dependency",
    "resolve_key",
    "validate_bundles",
    "write_manifest",
]
