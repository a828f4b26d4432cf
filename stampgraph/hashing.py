"""Content hashing for contracts, manifests and bundles.

Component-level hashes look like ``uif:<24 hex>``; bundle hashes look like
``uifb:<24 hex>``. All hashes are computed over a stable JSON rendering
(sorted keys, sorted string arrays) so they do not depend on extraction
order.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from stampgraph.models.contract import CompositionFacts, LogicSignature

SCHEMA_VERSION = "0.3"
BUNDLE_SCHEMA_VERSION = "0.1"

_HASH_RE = re.compile(r"^uif:[a-f0-9]+$")
_STRICT_HASH_RE = re.compile(r"^uif:[a-f0-9]{24}$")
_BUNDLE_HASH_RE = re.compile(r"^uifb:[a-f0-9]{24}$")
_HEADER_RE = re.compile(r"/\*\*[\s\S]*?@uif[\s\S]*?\*/\n*")


@runtime_checkable
class Hasher(Protocol):
    """Derives the two similarity hashes of a contract's shape."""

    def structure_hash(self, composition: CompositionFacts) -> str: ...

    def signature_hash(self, signature: LogicSignature) -> str: ...


class ContractHasher:
    """Default Hasher: sha256 over the stable JSON of each shape."""

    def structure_hash(self, composition: CompositionFacts) -> str:
        return structure_hash(composition)

    def signature_hash(self, signature: LogicSignature) -> str:
        return signature_hash(signature)


def stable_stringify(obj: Any) -> str:
    """JSON with sorted object keys and sorted string arrays."""
    return json.dumps(_stabilize(obj), separators=(",", ":"), ensure_ascii=False)


def _stabilize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _stabilize(value[k]) for k in sorted(value) if value[k] is not None}
    if isinstance(value, (list, tuple)):
        items = [_stabilize(v) for v in value]
        if all(isinstance(v, str) for v in items):
            return sorted(items)
        return items
    return value


def _digest(payload: str, prefix: str = "uif:") -> str:
    return prefix + hashlib.sha256(payload.encode("utf-8")).hexdigest()[:24]


def structure_hash(composition: CompositionFacts) -> str:
    """Changes only when structural composition changes (imports excluded)."""
    payload = {
        "variables": sorted(composition.variables),
        "hooks": sorted(composition.hooks),
        "components": sorted(composition.components),
        "functions": sorted(composition.functions),
    }
    return _digest(stable_stringify(payload))


def signature_hash(signature: LogicSignature) -> str:
    """Changes only when the component's API contract changes."""
    payload = {
        "props": signature.props,
        "events": signature.events,
        "state": signature.state,
    }
    return _digest(stable_stringify(payload))


def semantic_hash(composition: CompositionFacts, signature: LogicSignature) -> str:
    """hash(structure + signature + schema version)."""
    payload = {
        "schemaVersion": SCHEMA_VERSION,
        "structure": {
            "variables": sorted(composition.variables),
            "hooks": sorted(composition.hooks),
            "components": sorted(composition.components),
            "functions": sorted(composition.functions),
        },
        "signature": {
            "props": signature.props,
            "events": signature.events,
            "state": signature.state,
        },
    }
    return _digest(stable_stringify(payload))


def file_hash(content: str) -> str:
    """Hash raw source, ignoring the generated ``@uif`` header block."""
    stripped = _HEADER_RE.sub("", content, count=1)
    return _digest(stripped.replace("\r\n", "\n"))


def bundle_hash(
    nodes: Iterable[Mapping[str, str]],
    depth: int,
    schema_version: str = BUNDLE_SCHEMA_VERSION,
) -> str:
    """Stable cache key for a bundle: its ``(entryId, semanticHash)`` pairs + depth."""
    ordered = sorted(
        ({"entryId": n["entryId"], "semanticHash": n.get("semanticHash", "")} for n in nodes),
        key=lambda n: n["entryId"],
    )
    payload = {"schemaVersion": schema_version, "depth": depth, "nodes": ordered}
    return _digest(stable_stringify(payload), prefix="uifb:")


def is_valid_hash(value: Any, strict: bool = False) -> bool:
    if not isinstance(value, str):
        return False
    return bool((_STRICT_HASH_RE if strict else _HASH_RE).match(value))


def is_valid_bundle_hash(value: Any) -> bool:
    return isinstance(value, str) and bool(_BUNDLE_HASH_RE.match(value))
