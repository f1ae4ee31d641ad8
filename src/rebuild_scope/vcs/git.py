"""Thin subprocess wrapper around the git executable."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from ..exceptions import VcsUnavailable
from ..logging_config import get_logger

logger = get_logger(__name__)

# Short lookups only. Diff, status, fetch and checkout pass timeout=None.
_QUERY_TIMEOUT = 30


class GitCommandError(Exception):
    """A git command exited non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str):
        super().__init__(f"git {' '.join(args)} failed (rc={returncode}): {stderr.strip()}")
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr


class Git:
    """Runs git commands against one working tree."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def run(self, *args: str, timeout: Optional[int] = _QUERY_TIMEOUT) -> str:
        """Run ``git -C <path> <args>`` and return stdout.

        Raises:
            GitCommandError: If git exits non-zero
            VcsUnavailable: If git is not installed or the command timed out
        """
        cmd = ["git", "-C", str(self.path), *args]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                encoding="utf-8",
                # File names are raw bytes; keep undecodable ones as surrogates.
                errors="surrogateescape",
                timeout=timeout,
            )
        except FileNotFoundError:
            raise VcsUnavailable(self.path, "git executable not found")
        except subprocess.TimeoutExpired:
            raise VcsUnavailable(self.path, f"git {args[0]} timed out after {timeout}s")

        if result.returncode != 0:
            raise GitCommandError(list(args), result.returncode, result.stderr)
        return result.stdout

    def try_run(self, *args: str) -> Optional[str]:
        """Like :meth:`run` but returns None when git exits non-zero."""
        try:
            return self.run(*args)
        except GitCommandError:
            return None
