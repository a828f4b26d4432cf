"""Bundle document validation: errors fail a document, warnings do not."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from stampgraph.bundle import BUNDLE_TYPE
from stampgraph.hashing import BUNDLE_SCHEMA_VERSION, is_valid_bundle_hash, is_valid_hash
from stampgraph.models.contract import CONTRACT_TYPE
from stampgraph.schemas import BundleGraph, BundleMeta

KNOWN_CONTRACT_VERSIONS = ("0.3", "0.4")


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    bundle_count: int = 0
    node_count: int = 0
    edge_count: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_bundles(document: Any) -> ValidationReport:
    """Check a parsed bundle document (a JSON array of bundles)."""
    report = ValidationReport()
    if not isinstance(document, list):
        report.errors.append("Invalid format: expected array of bundles")
        return report

    report.bundle_count = len(document)
    for i, bundle in enumerate(document, start=1):
        label = f"Bundle {i}"
        if not isinstance(bundle, dict):
            report.errors.append(f"{label}: expected an object")
            continue
        _validate_bundle(bundle, label, report)
    return report


def _validate_bundle(bundle: dict[str, Any], label: str, report: ValidationReport) -> None:
    if bundle.get("type") != BUNDLE_TYPE:
        report.errors.append(
            f"{label}: Invalid type (expected '{BUNDLE_TYPE}', got '{bundle.get('type')}')"
        )
    if bundle.get("schemaVersion") != BUNDLE_SCHEMA_VERSION:
        report.errors.append(
            f"{label}: Invalid schemaVersion (expected '{BUNDLE_SCHEMA_VERSION}', "
            f"got '{bundle.get('schemaVersion')}')"
        )
    if not bundle.get("entryId"):
        report.errors.append(f"{label}: Missing entryId")

    graph: BundleGraph | None = None
    try:
        graph = BundleGraph.model_validate(bundle.get("graph"))
    except ValidationError:
        report.errors.append(f"{label}: Invalid graph structure")

    try:
        BundleMeta.model_validate(bundle.get("meta"))
    except ValidationError:
        report.errors.append(f"{label}: Invalid meta structure")

    if graph is not None:
        report.node_count += len(graph.nodes)
        report.edge_count += len(graph.edges)
        for node in graph.nodes:
            contract = node.contract
            if contract is None or contract.type != CONTRACT_TYPE:
                report.errors.append(f"{label}: Node {node.entry_id} has invalid contract type")
                continue
            if contract.schema_version not in KNOWN_CONTRACT_VERSIONS:
                report.warnings.append(
                    f"{label}: Node {node.entry_id} has unexpected contract version "
                    f"{contract.schema_version}"
                )
            for name, value in (
                ("semanticHash", contract.semantic_hash),
                ("fileHash", contract.file_hash),
            ):
                if value is not None and not is_valid_hash(value):
                    report.warnings.append(
                        f"{label}: Node {node.entry_id} {name} has unexpected format"
                    )

    bundle_hash = bundle.get("bundleHash")
    if bundle_hash and not is_valid_bundle_hash(bundle_hash):
        report.warnings.append(f"{label}: bundleHash has unexpected format")
