"""Entry id normalization shared by every graph lookup."""

from __future__ import annotations

import posixpath
import re

_DRIVE_RE = re.compile(r"^([A-Z]):")
_SOURCE_EXT_RE = re.compile(r"\.(tsx?|jsx?)$")


def normalize_entry_id(entry_id: str) -> str:
    """Return the canonical, POSIX-style form of *entry_id*.

    Backslashes become forward slashes, ``.`` and ``..`` segments are
    collapsed, a Windows drive letter is lower-cased and a leading ``./``
    is dropped. Manifest keys produced by the extractor already have this
    shape, so normalizing a key is a no-op.
    """
    if not entry_id:
        return entry_id
    normalized = posixpath.normpath(entry_id.replace("\\", "/"))
    normalized = _DRIVE_RE.sub(lambda m: f"{m.group(1).lower()}:", normalized)
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def parent_dir(entry_id: str) -> str:
    """Directory part of a normalized id (``""`` for top-level files)."""
    idx = entry_id.rfind("/")
    return entry_id[:idx] if idx != -1 else ""


def strip_source_ext(name: str) -> str:
    return _SOURCE_EXT_RE.sub("", name)


def file_stem(entry_id: str) -> str:
    """Terminal path segment with a ``.tsx/.ts/.jsx/.js`` extension removed."""
    return strip_source_ext(re.split(r"[/\\]", entry_id)[-1])
