"""Base exception for rebuild-scope."""

from typing import Dict, Optional


class RebuildScopeError(Exception):
    """Base exception for all rebuild-scope errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class SkipRequested(RebuildScopeError):
    """Raised when incremental filtering should be bypassed for this run.

    Not a failure: the host proceeds with the unfiltered module list.
    """

    def __init__(self, reason: str):
        super().__init__(f"Incremental analysis skipped: {reason}", details={"reason": reason})
        self.reason = reason


class BuildIntegrationError(RebuildScopeError):
    """Raised by the host layer when analysis fails and fail_on_error is set."""

    pass
