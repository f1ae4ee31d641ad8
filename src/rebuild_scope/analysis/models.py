"""Result types of an impact analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..modules.models import Module

VALIDATE_GOAL = "validate"


class TestDirective(Enum):
    """Test handling for a module that is built but not impacted.

    The value is the build property the host sets to ``"true"``.
    """

    __test__ = False  # not a pytest class

    SKIP_TESTS = "maven.test.skip"
    # Skips running tests but still compiles them, for modules whose test
    # artifact is consumed by other modules.
    SKIP_TEST_EXECUTION = "skipTests"


@dataclass(frozen=True)
class TestSelectorRequest:
    """Ask the host to attach the external test-selection plugin."""

    __test__ = False

    force_all: bool


@dataclass
class BuildView:
    """Read-only view of the host build the analysis needs."""

    all_modules: list[Module]
    active_modules: list[Module]  # host order, after any module selection
    current_module: Module
    build_root: Path
    goals: list[str] = field(default_factory=list)


@dataclass
class RebuildPlan:
    """What the host should build.

    Attributes:
        module_ids: Modules to build, in host order
        goals: Replacement goal list, None to keep the requested goals
        directives: Test directive per module id
        changed_paths: Files reported by the revision diff
        changed_ids: Modules owning a changed file
        impacted_ids: changed_ids plus everything depending on them
        upstream_ids: Modules pulled in only because impacted ones depend on them
        validate_only: Nothing to rebuild; only the current module is validated
        test_selector: Test-selection plugin request, if enabled
    """

    module_ids: list[str]
    goals: Optional[list[str]] = None
    directives: dict[str, TestDirective] = field(default_factory=dict)
    changed_paths: set[Path] = field(default_factory=set)
    changed_ids: set[str] = field(default_factory=set)
    impacted_ids: set[str] = field(default_factory=set)
    upstream_ids: set[str] = field(default_factory=set)
    validate_only: bool = False
    test_selector: Optional[TestSelectorRequest] = None

    def to_dict(self) -> dict:
        return {
            "modules": list(self.module_ids),
            "goals": self.goals,
            "directives": {k: v.value for k, v in sorted(self.directives.items())},
            "changed_files": sorted(str(p) for p in self.changed_paths),
            "changed_modules": sorted(self.changed_ids),
            "impacted_modules": sorted(self.impacted_ids),
            "upstream_modules": sorted(self.upstream_ids),
            "validate_only": self.validate_only,
            "test_selector": (
                None if self.test_selector is None
                else {"force_all": self.test_selector.force_all}
            ),
        }
