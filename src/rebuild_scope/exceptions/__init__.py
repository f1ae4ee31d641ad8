"""Exception hierarchy for rebuild-scope."""

from .base import BuildIntegrationError, RebuildScopeError, SkipRequested
from .config import ConfigurationError, InvalidConfigError, ManifestError
from .state import PersistedStateUnreadable, StateError
from .vcs import RefSpecInvalid, RevisionNotFound, VcsError, VcsUnavailable

__all__ = [
    "RebuildScopeError",
    "SkipRequested",
    "BuildIntegrationError",
    "VcsError",
    "VcsUnavailable",
    "RevisionNotFound",
    "RefSpecInvalid",
    "StateError",
    "PersistedStateUnreadable",
    "ConfigurationError",
    "InvalidConfigError",
    "ManifestError",
]
