"""Version-control exceptions: repository access, revisions, refspecs."""

from pathlib import Path
from typing import Union

from .base import RebuildScopeError


class VcsError(RebuildScopeError):
    """Base class for version-control errors."""

    pass


class VcsUnavailable(VcsError):
    """Raised when the repository cannot be opened or a git operation fails."""

    def __init__(self, repo_path: Union[str, Path], reason: str):
        super().__init__(
            f"Git repository unavailable: {repo_path}",
            details={"repo_path": str(repo_path), "reason": reason},
        )
        self.repo_path = repo_path
        self.reason = reason


class RevisionNotFound(VcsError):
    """Raised when a commit id or branch name does not resolve to a commit."""

    def __init__(self, revision: str, reason: str = "does not resolve to a commit"):
        super().__init__(
            f"Git revision not found: '{revision}'",
            details={"revision": revision, "reason": reason},
        )
        self.revision = revision
        self.reason = reason


class RefSpecInvalid(VcsError):
    """Raised when a branch to fetch is not a remote-tracking branch name."""

    def __init__(self, branch: str, reason: str):
        super().__init__(
            f"Branch name '{branch}' is not a tracking branch name",
            details={"branch": branch, "reason": reason},
        )
        self.branch = branch
        self.reason = reason
