"""Inputs of a revision diff."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..config import NEVER_MATCH, RebuildConfig
from ..exceptions import InvalidConfigError, RefSpecInvalid

REFS_REMOTES = "refs/remotes/"
REFS_HEADS = "refs/heads/"


@dataclass(frozen=True)
class ExclusionFilter:
    """Changed paths matching any of ``patterns`` (searched anywhere in the path) are dropped."""

    patterns: tuple[str, ...] = (NEVER_MATCH,)
    _compiled: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", tuple(re.compile(p) for p in self.patterns))

    def matches(self, path: Path | str) -> bool:
        text = str(path)
        return any(p.search(text) for p in self._compiled)

    def widen(self, pattern: str) -> "ExclusionFilter":
        """A filter that also excludes paths matching ``pattern``."""
        return ExclusionFilter(self.patterns + (pattern,))


@dataclass(frozen=True)
class DiffOptions:
    """What to compare and how."""

    build_root: Path
    base_branch: str = "HEAD"
    reference_branch: str = "refs/remotes/origin/develop"
    base_commit: str = ""
    reference_commit: str = ""
    commit_range: Optional[str] = None
    fetch_base_branch: bool = False
    fetch_reference_branch: bool = False
    compare_to_merge_base: bool = True
    include_uncommitted: bool = True
    exclude: ExclusionFilter = field(default_factory=ExclusionFilter)

    @classmethod
    def from_config(
        cls, config: RebuildConfig, build_root: Path, exclude: Optional[ExclusionFilter] = None
    ) -> "DiffOptions":
        return cls(
            build_root=build_root,
            base_branch=config.base_branch,
            reference_branch=config.reference_branch,
            base_commit=config.base_commit,
            reference_commit=config.reference_commit,
            commit_range=config.commit_range,
            fetch_base_branch=config.fetch_base_branch,
            fetch_reference_branch=config.fetch_reference_branch,
            compare_to_merge_base=config.compare_to_merge_base,
            include_uncommitted=config.include_uncommitted,
            exclude=exclude or ExclusionFilter((config.exclude_path_regex,)),
        )


def split_commit_range(commit_range: str) -> tuple[str, str]:
    """Split ``"<reference>...<base>"`` into ``(base, reference)``."""
    parts = commit_range.split("...")
    if len(parts) != 2 or not all(parts):
        raise InvalidConfigError("commit_range", commit_range, "expected '<reference>...<base>'")
    reference, base = parts
    return base, reference


def parse_tracking_branch(branch: str) -> tuple[str, str]:
    """Split ``refs/remotes/<remote>/<name>`` into ``(remote, name)``.

    Raises:
        RefSpecInvalid: If ``branch`` is not a remote-tracking branch name
    """
    if not branch.startswith(REFS_REMOTES):
        raise RefSpecInvalid(branch, f"does not start with {REFS_REMOTES}")
    remote, _, short_name = branch[len(REFS_REMOTES):].partition("/")
    if not remote or not short_name:
        raise RefSpecInvalid(branch, f"expected {REFS_REMOTES}<remote>/<branch>")
    return remote, short_name


def fetch_refspec(branch: str) -> tuple[str, str]:
    """Remote name and refspec that update the tracking branch ``branch``."""
    remote, short_name = parse_tracking_branch(branch)
    return remote, f"{REFS_HEADS}{short_name}:{branch}"
