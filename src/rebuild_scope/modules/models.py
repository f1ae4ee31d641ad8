"""Data models for the multi-module build.

A build is a set of modules, each owning a directory tree and declaring
dependencies on other artifacts. Some of those artifacts are other modules
of the same build (internal), the rest come from outside (external).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

TEST_JAR_GOAL = "test-jar"


@dataclass(frozen=True)
class Dependency:
    """A declared dependency on an artifact."""

    group_id: str
    artifact_id: str
    version: str

    @classmethod
    def parse(cls, coordinates: str) -> "Dependency":
        """Parse ``group:artifact:version``."""
        parts = coordinates.strip().split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"expected 'group:artifact:version', got '{coordinates}'")
        return cls(*parts)

    @property
    def key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(eq=False)
class Module:
    """One module of the build, as read from the host's project model.

    Instances compare by identity: one object per module per build
    invocation. ``properties`` is written by the host integration layer only.
    """

    group_id: str
    artifact_id: str
    version: str
    basedir: Path
    dependencies: list[Dependency] = field(default_factory=list)
    parent: Optional[str] = None  # id of the parent module, if any
    goals: list[str] = field(default_factory=list)  # goals of declared plugin executions
    properties: dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Version-less identifier, stable across releases."""
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def id(self) -> str:
        return str(self)

    @property
    def declares_test_jar(self) -> bool:
        """True if a plugin execution of this module produces a test artifact."""
        return TEST_JAR_GOAL in self.goals

    def provides(self, dependency: Dependency) -> bool:
        """True if ``dependency`` refers to this module's artifact and version."""
        return (
            dependency.group_id == self.group_id
            and dependency.artifact_id == self.artifact_id
            and dependency.version == self.version
        )

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"
