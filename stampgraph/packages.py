"""Package classifier: is an unresolved name a third-party package, and which version?"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path

import structlog

log = structlog.get_logger("stampgraph.packages")

PACKAGE_JSON = "package.json"

# npm names are lowercase; an optional @scope/ prefix; an optional /subpath.
_NPM_NAME_RE = re.compile(
    r"^(@[a-z0-9~][a-z0-9._~-]*/)?"  # scope
    r"[a-z0-9~][a-z0-9._~-]*"  # package name
    r"(/.*)?$"  # subpath import
)

_DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


def is_third_party_package(specifier: str) -> bool:
    """True if *specifier* looks like a package import rather than a local reference.

    Relative (``./x``, ``../x``), absolute (``/x``, ``C:\\x``) and
    protocol-style (``node:fs``) specifiers are not packages, and neither
    are PascalCase component names.

    Stricter than a plain non-relative check: only lowercase npm-style names
    qualify, so a bare component name such as ``Button`` stays local.
    """
    if not specifier or not specifier.strip():
        return False
    if specifier.startswith((".", "/")) or ":" in specifier:
        return False
    return bool(_NPM_NAME_RE.match(specifier))


def extract_package_name(specifier: str) -> str | None:
    """``@scope/pkg/sub`` -> ``@scope/pkg``; ``pkg/sub`` -> ``pkg``."""
    if not is_third_party_package(specifier):
        return None
    parts = specifier.split("/")
    if specifier.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


class PackageClassifier:
    """Classifies names and looks up declared versions in ``package.json``.

    The parsed ``package.json`` is cached per project root on this instance;
    create a new classifier to drop the cache.
    """

    def __init__(self) -> None:
        self._cache: dict[str, dict[str, dict[str, str]] | None] = {}

    def package_name(self, name: str) -> str | None:
        return extract_package_name(name)

    def get_version(self, package_name: str, project_root: str | Path) -> str | None:
        """Declared version of *package_name*, or None when unknown.

        Checks ``dependencies``, then ``devDependencies``, then
        ``peerDependencies``. Never raises on a missing or broken file.
        """
        sections = self._load(Path(project_root))
        if not sections:
            return None
        for section in _DEPENDENCY_SECTIONS:
            version = sections.get(section, {}).get(package_name)
            if version:
                return version
        return None

    async def get_version_async(
        self, package_name: str, project_root: str | Path
    ) -> str | None:
        return await asyncio.to_thread(self.get_version, package_name, project_root)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _load(self, project_root: Path) -> dict[str, dict[str, str]] | None:
        key = str(project_root.resolve())
        if key in self._cache:
            return self._cache[key]

        path = project_root / PACKAGE_JSON
        sections: dict[str, dict[str, str]] | None = None
        if path.is_file():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError, UnicodeDecodeError):
                log.debug("packages.lookup_failed", path=str(path), exc_info=True)
            else:
                if isinstance(data, dict):
                    sections = {
                        section: {
                            str(k): str(v)
                            for k, v in (data.get(section) or {}).items()
                        }
                        for section in _DEPENDENCY_SECTIONS
                        if isinstance(data.get(section), dict)
                    }
        self._cache[key] = sections
        return sections
