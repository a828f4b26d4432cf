"""Runtime defaults, overridable via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DEPTH = 1
DEFAULT_MAX_NODES = 100

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Collection and packing defaults.

    Environment:
        STAMPGRAPH_DEPTH         - BFS depth limit (default: 1)
        STAMPGRAPH_MAX_NODES     - hard cap on visited nodes (default: 100)
        STAMPGRAPH_PROJECT_ROOT  - where package.json lives (default: cwd)
        STAMPGRAPH_HASH_INDEX    - include hash indices in manifests (default: off)
    """

    depth: int = DEFAULT_DEPTH
    max_nodes: int = DEFAULT_MAX_NODES
    project_root: str = "."
    include_hash_index: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            depth=_int(env.get("STAMPGRAPH_DEPTH"), DEFAULT_DEPTH),
            max_nodes=_int(env.get("STAMPGRAPH_MAX_NODES"), DEFAULT_MAX_NODES),
            project_root=env.get("STAMPGRAPH_PROJECT_ROOT") or ".",
            include_hash_index=(env.get("STAMPGRAPH_HASH_INDEX", "").lower() in _TRUTHY),
        )


def _int(raw: str | None, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default
