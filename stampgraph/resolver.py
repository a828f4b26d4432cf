"""Resolver: map a raw dependency name to a canonical manifest key.

Both the manifest builder (to fill ``used_by``) and the collector (to expand
BFS edges) go through :class:`Resolver`, so graph edges and traversal edges
never diverge.

Matching tiers, first hit wins:

1. sibling paths of the referencing component: ``<dir>/<name>.tsx``,
   ``<dir>/<name>.ts``, ``<dir>/<name>/index.tsx``, ``<dir>/<name>/index.ts``
2. exact normalized id (manifest keys, then node ``entry_id`` fields)
3. any key ending in ``/<name>.tsx``, then ``/<name>.ts``
4. basename without extension equal to ``name``

Inside tiers 3 and 4 candidates are ordered by manifest iteration order;
when there is more than one the choice is reported as ambiguous.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

from stampgraph.models.manifest import ComponentNode
from stampgraph.paths import file_stem, normalize_entry_id, parent_dir, strip_source_ext

if TYPE_CHECKING:
    from stampgraph.models.manifest import ProjectManifest

_SIBLING_SUFFIXES = (".tsx", ".ts", "/index.tsx", "/index.ts")
_NAME_EXTENSIONS = (".tsx", ".ts")


@dataclass(frozen=True)
class Resolution:
    key: str
    tier: str  # "relative" | "exact" | "suffix" | "basename"
    candidates: tuple[str, ...] = ()

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


@dataclass(frozen=True)
class AmbiguousResolution:
    """A name that matched several components; ``chosen`` is the first scanned."""

    name: str
    referencing_id: str | None
    chosen: str
    candidates: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "referencedBy": self.referencing_id,
            "chosen": self.chosen,
            "candidates": list(self.candidates),
        }


class Resolver:
    """Name -> canonical id lookup over one set of manifest components.

    Indices are built once in ``__init__``; lookups never mutate state.
    """

    def __init__(self, components: Mapping[str, ComponentNode]) -> None:
        self._keys: list[str] = list(components)
        self._by_id: dict[str, str] = {}
        self._by_filename: dict[str, list[str]] = {}
        self._by_stem: dict[str, list[str]] = {}

        for key in self._keys:
            self._by_id.setdefault(normalize_entry_id(key), key)
        for key, node in components.items():
            self._by_id.setdefault(normalize_entry_id(node.entry_id), key)

        for key in self._keys:
            if "/" in key:
                self._by_filename.setdefault(key.rsplit("/", 1)[1], []).append(key)
            self._by_stem.setdefault(file_stem(key), []).append(key)

    def lookup_id(self, raw_id: str) -> str | None:
        """O(1) lookup of a path-like id against normalized keys and entry ids."""
        if not raw_id:
            return None
        return self._by_id.get(normalize_entry_id(raw_id))

    def match(self, name: str, referencing_id: str | None = None) -> Resolution | None:
        """Resolve *name* and report which tier matched and the candidates seen."""
        if not name:
            return None

        if referencing_id is not None:
            directory = parent_dir(normalize_entry_id(referencing_id))
            for suffix in _SIBLING_SUFFIXES:
                path = f"{directory}/{name}{suffix}" if directory else f"{name}{suffix}"
                key = self.lookup_id(path)
                if key is not None:
                    return Resolution(key, "relative", (key,))

        key = self.lookup_id(name)
        if key is not None:
            return Resolution(key, "exact", (key,))

        for ext in _NAME_EXTENSIONS:
            candidates = self._suffix_candidates(name, ext)
            if candidates:
                return Resolution(candidates[0], "suffix", tuple(candidates))

        candidates = self._by_stem.get(strip_source_ext(name), [])
        if candidates:
            return Resolution(candidates[0], "basename", tuple(candidates))
        return None

    def resolve(self, name: str, referencing_id: str | None = None) -> str | None:
        result = self.match(name, referencing_id)
        return result.key if result is not None else None

    def _suffix_candidates(self, name: str, ext: str) -> list[str]:
        target = f"{name}{ext}"
        if "/" not in name:
            return self._by_filename.get(target, [])
        return [key for key in self._keys if key.endswith(f"/{target}")]


def resolve_key(manifest: ProjectManifest, raw: str) -> str | None:
    """Resolve a user-supplied path or component name to a manifest key."""
    return manifest.resolver.resolve(raw)


def resolve_dependency(
    manifest: ProjectManifest, name: str, referencing_id: str
) -> str | None:
    """Resolve a dependency name found inside *referencing_id*'s contract."""
    return manifest.resolver.resolve(name, referencing_id)
