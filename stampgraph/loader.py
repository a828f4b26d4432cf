"""Reading contract and bundle documents from disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from stampgraph.exceptions import DocumentLoadError
from stampgraph.models.contract import Contract

log = structlog.get_logger("stampgraph.loader")

SIDECAR_SUFFIX = ".uif.json"
INDEX_TYPE = "LogicStampIndex"
_SKIP_DIRS = {"node_modules", "dist", "build", ".git", ".next", "coverage"}


def read_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DocumentLoadError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DocumentLoadError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise DocumentLoadError(f"Cannot read {path}: {e}") from e


def find_sidecars(root: str | Path) -> list[Path]:
    """All ``*.uif.json`` files under *root*, skipping build/vendor dirs, sorted."""
    root = Path(root)
    return sorted(
        p
        for p in root.rglob(f"*{SIDECAR_SUFFIX}")
        if p.is_file() and not _SKIP_DIRS.intersection(p.relative_to(root).parts)
    )


def load_contracts(source: str | Path) -> list[Contract]:
    """Load contracts from a JSON file (object or list) or a sidecar directory."""
    source = Path(source)
    if source.is_dir():
        documents = [(p, read_json(p)) for p in find_sidecars(source)]
    else:
        data = read_json(source)
        items = data if isinstance(data, list) else [data]
        documents = [(source, item) for item in items]

    contracts: list[Contract] = []
    for path, document in documents:
        try:
            contracts.append(Contract.from_dict(document))
        except (TypeError, ValueError) as e:
            raise DocumentLoadError(f"Invalid contract in {path}: {e}") from e
    log.debug("loader.contracts_loaded", source=str(source), count=len(contracts))
    return contracts


def load_bundles(path: str | Path) -> list[dict[str, Any]]:
    """Load a bundle document; a single bundle object is wrapped in a list."""
    data = read_json(path)
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list):
        raise DocumentLoadError(f"Expected an array of bundles in {path}")
    return data


def load_index(path: str | Path) -> dict[str, Any]:
    """Load a project index (``context_main.json``) listing per-folder context files."""
    data = read_json(path)
    if not isinstance(data, dict) or data.get("type") != INDEX_TYPE:
        got = data.get("type") if isinstance(data, dict) else type(data).__name__
        raise DocumentLoadError(
            f"Invalid index file {path}: expected type '{INDEX_TYPE}', got '{got}'"
        )
    if not isinstance(data.get("folders"), list):
        raise DocumentLoadError(f"Invalid index file {path}: 'folders' must be an array")
    return data
