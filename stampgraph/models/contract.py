"""Contract model: the per-file input produced by the extraction layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

CONTRACT_TYPE = "UIFContract"
CONTRACT_SCHEMA_VERSION = "0.4"


class ExportKind(Enum):
    """Shape of a module's exports."""

    DEFAULT = "default"
    NAMED = "named"
    NONE = "none"


@dataclass(frozen=True)
class Exports:
    """Tagged union: ``Default`` | ``Named(names)`` | ``None``."""

    kind: ExportKind = ExportKind.NONE
    names: tuple[str, ...] = ()

    @classmethod
    def from_value(cls, value: Any) -> Exports:
        if value == "default":
            return cls(ExportKind.DEFAULT)
        if value == "named":
            return cls(ExportKind.NAMED)
        if isinstance(value, dict):
            named = value.get("named")
            if isinstance(named, list) and named:
                return cls(ExportKind.NAMED, tuple(str(n) for n in named))
        return cls(ExportKind.NONE)

    def to_value(self) -> str | dict[str, list[str]] | None:
        if self.kind is ExportKind.DEFAULT:
            return "default"
        if self.kind is ExportKind.NAMED:
            return {"named": list(self.names)} if self.names else "named"
        return None


@dataclass(frozen=True)
class CompositionFacts:
    """What a component is built from. ``components`` are outgoing edges by name."""

    variables: tuple[str, ...] = ()
    hooks: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    functions: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CompositionFacts:
        data = data or {}
        return cls(
            variables=_str_tuple(data.get("variables")),
            hooks=_str_tuple(data.get("hooks")),
            components=_str_tuple(data.get("components")),
            functions=_str_tuple(data.get("functions")),
            imports=_str_tuple(data.get("imports")),
        )

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "variables": list(self.variables),
            "hooks": list(self.hooks),
            "components": list(self.components),
            "functions": list(self.functions),
            "imports": list(self.imports),
        }


@dataclass(frozen=True)
class LogicSignature:
    """The component's API: props, events and (optional) local state."""

    props: dict[str, Any] = field(default_factory=dict)
    events: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LogicSignature:
        data = data or {}
        # "emits" is the newer spelling of "events"
        events = data.get("emits", data.get("events"))
        state = data.get("state")
        return cls(
            props=dict(data.get("props") or {}),
            events=dict(events or {}),
            state=dict(state) if isinstance(state, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"props": dict(self.props), "emits": dict(self.events)}
        if self.state is not None:
            out["state"] = dict(self.state)
        return out


@dataclass(frozen=True)
class Contract:
    """Structured description of one source component.

    Produced once per scan by the extraction layer and never mutated. A
    newer contract with the same ``entry_id`` supersedes, never merges.
    """

    entry_id: str
    description: str = ""
    composition: CompositionFacts = field(default_factory=CompositionFacts)
    logic_signature: LogicSignature = field(default_factory=LogicSignature)
    exports: Exports = field(default_factory=Exports)
    semantic_hash: str = ""
    file_hash: str = ""
    used_in: tuple[str, ...] = ()
    kind: str = "react:component"
    source: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Contract:
        """Build a contract from a sidecar / bundle document.

        Accepts both key spellings seen in the wild: ``composition`` /
        ``interface`` and the older ``version`` / ``logicSignature``.
        """
        if not isinstance(data, dict):
            raise TypeError(f"contract must be a JSON object, got {type(data).__name__}")
        entry_id = data.get("entryId")
        if not isinstance(entry_id, str) or not entry_id:
            raise ValueError("contract is missing 'entryId'")
        composition = data.get("composition", data.get("version"))
        signature = data.get("interface", data.get("logicSignature"))
        return cls(
            entry_id=entry_id,
            description=str(data.get("description") or ""),
            composition=CompositionFacts.from_dict(
                composition if isinstance(composition, dict) else None
            ),
            logic_signature=LogicSignature.from_dict(
                signature if isinstance(signature, dict) else None
            ),
            exports=Exports.from_value(data.get("exports")),
            semantic_hash=str(data.get("semanticHash") or ""),
            file_hash=str(data.get("fileHash") or ""),
            used_in=_str_tuple(data.get("usedIn")),
            kind=str(data.get("kind") or "react:component"),
            source=data,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": CONTRACT_TYPE,
            "schemaVersion": CONTRACT_SCHEMA_VERSION,
            "kind": self.kind,
            "entryId": self.entry_id,
            "description": self.description,
            "composition": self.composition.to_dict(),
            "interface": self.logic_signature.to_dict(),
            "semanticHash": self.semantic_hash,
            "fileHash": self.file_hash,
        }
        exports = self.exports.to_value()
        if exports is not None:
            out["exports"] = exports
        if self.used_in:
            out["usedIn"] = list(self.used_in)
        return out

    def document(self) -> dict[str, Any]:
        """The contract as it should be embedded in a bundle."""
        return self.source if self.source is not None else self.to_dict()


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value)
