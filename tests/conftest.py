"""Shared test fixtures for rebuild-scope tests."""

import logging
import os
import shutil
import subprocess
from pathlib import Path

import pytest

from rebuild_scope.modules.models import Dependency, Module

GROUP = "com.acme"
VERSION = "1.0"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not found")


def make_module(root: Path, artifact: str, deps=(), parent=None, goals=(), path=None, version=VERSION):
    """Module ``com.acme:<artifact>:<version>`` rooted at ``root/<path or artifact>``.

    ``deps`` entries are artifact ids of the same group and version, or full
    ``group:artifact:version`` coordinates.
    """
    dependencies = [
        Dependency.parse(d) if d.count(":") == 2 else Dependency(GROUP, d, VERSION) for d in deps
    ]
    return Module(
        group_id=GROUP,
        artifact_id=artifact,
        version=version,
        basedir=root / (artifact if path is None else path),
        dependencies=dependencies,
        parent=parent,
        goals=list(goals),
    )


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_files(repo: Path, files: dict, message: str = "change") -> str:
    """Write ``files`` (relative path -> content), commit them, return the commit id."""
    for name, content in files.items():
        target = repo / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(path, "config", "user.email", "dev@example.com")
    git(path, "config", "user.name", "Dev")
    git(path, "config", "commit.gpgsign", "false")
    return Path(os.path.realpath(path))


@pytest.fixture(autouse=True)
def isolated_git(monkeypatch, tmp_path):
    """Keep git from discovering repositories above the test directory."""
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)


@pytest.fixture
def git_repo(tmp_path):
    """Repository on ``main`` with one commit containing two modules."""
    repo = init_repo(tmp_path / "repo")
    commit_files(
        repo,
        {
            "pom.xml": "<project/>\n",
            "core/pom.xml": "<project/>\n",
            "core/src/Core.java": "class Core {}\n",
            "app/pom.xml": "<project/>\n",
            "app/src/App.java": "class App {}\n",
        },
        "initial",
    )
    return repo


@pytest.fixture
def build_root(tmp_path):
    root = tmp_path / "build"
    root.mkdir()
    return root


@pytest.fixture
def chain(build_root):
    """parent <- a <- b <- c, plus an unrelated d; a..d are children of parent."""
    parent = make_module(build_root, "parent", path=".")
    pid = parent.id
    a = make_module(build_root, "a", parent=pid)
    b = make_module(build_root, "b", deps=["a"], parent=pid)
    c = make_module(build_root, "c", deps=["b"], parent=pid)
    d = make_module(build_root, "d", parent=pid)
    return {"parent": parent, "a": a, "b": b, "c": c, "d": d}


@pytest.fixture(autouse=True)
def reset_log_level():
    """CLI commands configure the package logger; undo it between tests."""
    yield
    logging.getLogger("rebuild_scope").setLevel(logging.NOTSET)
