"""Version control: git access and revision diffs."""

from .differ import RevisionDiffer
from .git import Git, GitCommandError
from .models import DiffOptions, ExclusionFilter, parse_tracking_branch, split_commit_range

__all__ = [
    "RevisionDiffer",
    "Git",
    "GitCommandError",
    "DiffOptions",
    "ExclusionFilter",
    "parse_tracking_branch",
    "split_commit_range",
]
