"""Shared pytest fixtures for stampgraph tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from stampgraph.hashing import semantic_hash
from stampgraph.models.contract import CompositionFacts, Contract, Exports, LogicSignature


def _contract_doc(
    entry_id: str,
    components: list[str] | None = None,
    *,
    hooks: list[str] | None = None,
    imports: list[str] | None = None,
    props: dict | None = None,
    exports: object = "default",
) -> dict:
    composition = CompositionFacts(
        hooks=tuple(hooks or ()),
        components=tuple(components or ()),
        imports=tuple(imports or ()),
    )
    signature = LogicSignature(props=dict(props or {}))
    return Contract(
        entry_id=entry_id,
        description=f"{entry_id} component",
        composition=composition,
        logic_signature=signature,
        exports=Exports.from_value(exports),
        semantic_hash=semantic_hash(composition, signature),
        file_hash="uif:" + "0" * 24,
    ).to_dict()


@pytest.fixture
def contract_doc():
    """Factory for contract documents as the extraction layer writes them."""
    return _contract_doc


@pytest.fixture
def make_contract():
    """Factory for parsed :class:`Contract` objects."""

    def _make(entry_id: str, components: list[str] | None = None, **kwargs) -> Contract:
        return Contract.from_dict(_contract_doc(entry_id, components, **kwargs))

    return _make


@pytest.fixture
def sidecar_dir(tmp_path: Path, contract_doc) -> Path:
    """A project tree with three ``.uif.json`` sidecars and a package.json."""
    root = tmp_path / "project"
    docs = {
        "src/App.tsx": contract_doc("src/App.tsx", ["Header", "Card", "Button"]),
        "src/Header.tsx": contract_doc("src/Header.tsx", ["Button"], hooks=["useState"]),
        "src/components/Button.tsx": contract_doc(
            "src/components/Button.tsx", props={"label": "string"}
        ),
    }
    for entry_id, doc in docs.items():
        path = root / f"{entry_id}.uif.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(doc))
    (root / "package.json").write_text(json.dumps({"dependencies": {"react": "^18.2.0"}}))
    return root
