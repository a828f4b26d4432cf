"""Custom exceptions for stampgraph."""


class StampGraphError(Exception):
    """Base exception for all stampgraph errors."""


class ComponentNotFoundError(StampGraphError):
    """Raised when an entry point cannot be resolved to a manifest key."""

    def __init__(self, entry_id: str, suggestions: list[str] | None = None, total: int = 0):
        self.entry_id = entry_id
        self.suggestions = suggestions or []
        message = f"Component not found: {entry_id}"
        if self.suggestions:
            listed = "\n".join(f"  - {key}" for key in self.suggestions)
            message += f"\nAvailable components:\n{listed}"
            if len(self.suggestions) < total:
                message += f"\n  ... and {total - len(self.suggestions)} more"
        super().__init__(message)


class MissingContractError(StampGraphError):
    """Raised when packing needs a contract that was not loaded."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Missing contract for {entry_id}")


class DocumentLoadError(StampGraphError):
    """Raised when a contract or bundle document cannot be read or parsed."""


class ManifestLoadError(StampGraphError):
    """Raised when a persisted manifest cannot be read or parsed."""


class ManifestWriteError(StampGraphError):
    """Raised when the manifest cannot be written to disk."""
