"""Data models: contracts, the manifest graph and collection results."""

from stampgraph.models.collection import CollectionResult, MissingDependency, MissingReason
from stampgraph.models.contract import (
    CompositionFacts,
    Contract,
    ExportKind,
    Exports,
    LogicSignature,
)
from stampgraph.models.manifest import ComponentNode, HashIndex, ProjectManifest

__all__ = [
    "CollectionResult",
    "ComponentNode",
    "CompositionFacts",
    "Contract",
    "ExportKind",
    "Exports",
    "HashIndex",
    "LogicSignature",
    "MissingDependency",
    "MissingReason",
    "ProjectManifest",
]
