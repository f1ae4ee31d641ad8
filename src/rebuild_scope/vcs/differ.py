"""Compute the set of files that differ between two revisions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from ..exceptions import RevisionNotFound, VcsUnavailable
from ..logging_config import get_logger
from .git import Git, GitCommandError
from .models import REFS_HEADS, DiffOptions, fetch_refspec, split_commit_range

logger = get_logger(__name__)

HEAD = "HEAD"
WORKTREES_PREFIX = "worktrees/"


class RevisionDiffer:
    """Diffs two revisions of the repository containing ``repo_path``.

    Note that :meth:`diff` may check out the base branch, which changes the
    working tree. Concurrent runs against one checkout are not supported.
    """

    def __init__(self, repo_path: Path):
        self.git = Git(repo_path)
        self._work_tree: Optional[Path] = None

    @property
    def work_tree(self) -> Path:
        """Absolute top-level directory of the working tree."""
        if self._work_tree is None:
            try:
                top = self.git.run("rev-parse", "--show-toplevel").strip()
            except GitCommandError as e:
                raise VcsUnavailable(self.git.path, e.stderr.strip() or "not a git repository")
            self._work_tree = Path(os.path.normpath(top))
        return self._work_tree

    def diff(self, options: DiffOptions) -> set[Path]:
        """Absolute paths that differ between the base and reference revisions.

        Raises:
            VcsUnavailable: If the repository cannot be used or fetch/checkout fails
            RevisionNotFound: If a commit or branch cannot be resolved
            RefSpecInvalid: If a branch to fetch is not a tracking branch
        """
        if options.commit_range == "":
            # No previous revision to compare with (e.g. first CI build):
            # report the build root itself so every module counts as changed.
            logger.info("Empty commit range, treating the whole build as changed")
            return {Path(os.path.normpath(os.path.abspath(options.build_root)))}

        work_tree = self.work_tree
        self._fetch(options)
        self._checkout(options.base_branch)

        if options.commit_range is not None:
            base_rev, reference_rev = split_commit_range(options.commit_range)
        else:
            base_rev, reference_rev = options.base_commit, options.reference_commit

        if base_rev:
            base = self._resolve(base_rev)
            logger.info(f"Base commit is: {base}")
        else:
            base = self._branch_commit(options.base_branch)

        if reference_rev:
            reference = self._resolve(reference_rev)
            logger.info(f"Reference commit is: {reference}")
        else:
            reference = self._branch_commit(options.reference_branch)
            if options.compare_to_merge_base:
                reference = self._merge_base(base, reference)

        paths = self._tree_diff(base, reference, work_tree, options)
        if options.include_uncommitted:
            paths |= self.uncommitted_changes()
        return paths

    def current_full_branch(self) -> str:
        """``refs/heads/<name>`` of the checked-out branch, or the commit id when detached."""
        branch = self.git.try_run("symbolic-ref", "-q", HEAD)
        if branch:
            return branch.strip()
        return self._resolve(HEAD)

    def current_branch(self) -> Optional[str]:
        """Short name of the checked-out branch, None when detached."""
        branch = self.git.try_run("rev-parse", "--abbrev-ref", HEAD)
        if branch is None or branch.strip() == HEAD:
            return None
        return branch.strip()

    def uncommitted_changes(self) -> set[Path]:
        """Tracked files modified in the index or working tree.

        Untracked files are not included. Both sides of a staged rename are.
        """
        try:
            out = self.git.run(
                "status", "--porcelain=v1", "-z", "--untracked-files=no", timeout=None
            )
        except GitCommandError as e:
            raise VcsUnavailable(self.git.path, f"git status failed: {e.stderr.strip()}")

        paths: set[Path] = set()
        entries = iter(out.split("\0"))
        for entry in entries:
            if len(entry) < 4:
                continue
            code, path = entry[:2], entry[3:]
            paths.add(self._absolute(path))
            if "R" in code or "C" in code:
                original = next(entries, "")
                if original and "R" in code:
                    paths.add(self._absolute(original))
        return paths

    def _fetch(self, options: DiffOptions) -> None:
        if options.fetch_reference_branch:
            self._fetch_branch(options.reference_branch)
        if options.fetch_base_branch:
            self._fetch_branch(options.base_branch)

    def _fetch_branch(self, branch: str) -> None:
        remote, refspec = fetch_refspec(branch)
        logger.info(f"Fetching branch {branch}")
        try:
            self.git.run("fetch", remote, refspec, timeout=None)
        except GitCommandError as e:
            raise VcsUnavailable(self.git.path, f"fetch of {branch} failed: {e.stderr.strip()}")

    def _checkout(self, base_branch: str) -> None:
        if base_branch == HEAD or base_branch.startswith(WORKTREES_PREFIX):
            return
        if self.current_full_branch() == base_branch:
            return

        name = base_branch[len(REFS_HEADS):] if base_branch.startswith(REFS_HEADS) else base_branch
        logger.info(f"Checking out base branch {base_branch}...")
        try:
            self.git.run("checkout", name, timeout=None)
        except GitCommandError as e:
            raise VcsUnavailable(
                self.git.path, f"checkout of {base_branch} failed: {e.stderr.strip()}"
            )

    def _resolve(self, revision: str) -> str:
        commit = self.git.try_run("rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}")
        if not commit:
            raise RevisionNotFound(revision)
        return commit.strip()

    def _branch_commit(self, branch: str) -> str:
        commit = self._resolve(branch)
        logger.info(f"Reference commit of branch {branch} is commit of id: {commit}")
        return commit

    def _merge_base(self, base: str, reference: str) -> str:
        commit = self.git.try_run("merge-base", base, reference)
        if not commit:
            raise RevisionNotFound(f"{base}...{reference}", "no merge base")
        logger.info(f"Using merge base of id: {commit.strip()}")
        return commit.strip()

    def _tree_diff(
        self, base: str, reference: str, work_tree: Path, options: DiffOptions
    ) -> set[Path]:
        try:
            out = self.git.run(
                "diff", "--name-only", "-z", "--no-renames", base, reference, timeout=None
            )
        except GitCommandError as e:
            raise VcsUnavailable(self.git.path, f"git diff failed: {e.stderr.strip()}")

        paths: set[Path] = set()
        for name in out.split("\0"):
            if not name:
                continue
            path = Path(os.path.normpath(work_tree / name))
            if options.exclude.matches(path):
                logger.debug(f"Excluded changed file: {path}")
                continue
            paths.add(path)
        return paths

    def _absolute(self, name: str) -> Path:
        return Path(os.path.normpath(self.work_tree / name))
