"""Persisted-state exceptions: fingerprint cache and skipped-module ledger."""

from pathlib import Path

from .base import RebuildScopeError


class StateError(RebuildScopeError):
    """Base class for persisted-state errors."""

    pass


class PersistedStateUnreadable(StateError):
    """Raised when a state file exists but cannot be read or decoded."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Cannot read state file: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason
