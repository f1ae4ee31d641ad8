"""Impact analysis: from a revision diff to the list of modules to rebuild."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Optional

from ..config import RebuildConfig
from ..exceptions import SkipRequested
from ..logging_config import get_logger
from ..modules.graph import DependencyGraph
from ..modules.locator import ModuleLocator
from ..modules.models import Module
from ..state.fingerprint import FingerprintCache, dependency_map
from ..state.ledger import SkippedModuleLedger
from ..vcs.differ import RevisionDiffer
from ..vcs.models import DiffOptions, ExclusionFilter
from .models import VALIDATE_GOAL, BuildView, RebuildPlan, TestDirective, TestSelectorRequest

logger = get_logger(__name__)

DELIMITER = "-" * 72


class ImpactAnalyzer:
    """Decides which modules of a build need to be rebuilt.

    The analyzer only reads the modules it is given; the returned
    :class:`RebuildPlan` is applied by the host integration layer.
    """

    def __init__(
        self,
        config: RebuildConfig,
        differ: RevisionDiffer,
        fingerprints: Optional[FingerprintCache] = None,
        ledger: Optional[SkippedModuleLedger] = None,
    ):
        self.config = config
        self.differ = differ
        self.fingerprints = fingerprints
        self.ledger = ledger

    def analyze(self, view: BuildView) -> RebuildPlan:
        """Compute the rebuild plan for ``view``.

        Raises:
            SkipRequested: If the current branch matches disable_if_branch_regex
            VcsUnavailable, RevisionNotFound, RefSpecInvalid: From the revision diff
        """
        self._check_branch()

        exclude = self._exclusion_filter(view.all_modules)
        skipped = self.ledger.load() if self.ledger is not None else set()

        options = DiffOptions.from_config(self.config, view.build_root, exclude)
        changed_paths = self.differ.diff(options)

        locator = ModuleLocator(view.all_modules)
        changed = locator.locate_all(changed_paths)

        logger.info(DELIMITER)
        _log_modules("Changed Artifacts:", changed)

        graph = DependencyGraph.build(view.all_modules)
        for cycle in graph.find_cycles():
            logger.warning(f"Dependency cycle between modules: {', '.join(sorted(cycle))}")

        impacted = graph.dependents(m.id for m in changed)

        plan = RebuildPlan(
            module_ids=[],
            changed_paths=changed_paths,
            changed_ids={m.id for m in changed},
            impacted_ids=impacted,
        )

        if self.config.build_all:
            plan.module_ids = [m.id for m in view.active_modules]
            for module in view.active_modules:
                if module.id not in impacted:
                    self._skip_tests(plan, module)
        else:
            self._select_modules(plan, view, graph, skipped)

        if self.config.use_test_selector:
            plan.test_selector = TestSelectorRequest(force_all=not self._source_changes_only(changed_paths))
            if plan.test_selector.force_all:
                logger.info("Test selection forced to run all tests: not all changes are sources")

        return plan

    def _select_modules(
        self, plan: RebuildPlan, view: BuildView, graph: DependencyGraph, skipped: set[str]
    ) -> None:
        rebuild = set(plan.impacted_ids)
        if self.config.make_upstream:
            active = {m.id for m in view.active_modules}
            plan.upstream_ids = graph.dependencies(plan.impacted_ids, within=active) - plan.impacted_ids
            rebuild |= plan.upstream_ids
            for module in view.active_modules:
                if module.id in plan.upstream_ids:
                    self._skip_tests(plan, module)

        # Host order is kept; modules skipped last time are retried.
        plan.module_ids = [
            m.id for m in view.active_modules if m.id in rebuild or m.id in skipped
        ]
        if not plan.module_ids:
            logger.info("No changed artifacts to build. Executing validate goal on current project only.")
            plan.module_ids = [view.current_module.id]
            plan.goals = [VALIDATE_GOAL]
            plan.validate_only = True
            plan.directives.clear()
        else:
            plan.directives = {k: v for k, v in plan.directives.items() if k in plan.module_ids}

    def _skip_tests(self, plan: RebuildPlan, module: Module) -> None:
        if not self.config.skip_tests_for_not_impacted:
            return
        if module.declares_test_jar:
            logger.debug(f"{module.artifact_id}: test-jar goal detected, test sources will be compiled")
            plan.directives[module.id] = TestDirective.SKIP_TEST_EXECUTION
        else:
            plan.directives[module.id] = TestDirective.SKIP_TESTS

    def _exclusion_filter(self, modules: list[Module]) -> ExclusionFilter:
        exclude = ExclusionFilter((self.config.exclude_path_regex,))
        if self.fingerprints is None:
            return exclude

        changed = self.fingerprints.check_and_update(dependency_map(modules))
        if not changed:
            logger.info(
                f"Excluding {self.config.descriptor_file_name}, dependencies did not change"
            )
            exclude = exclude.widen(re.escape(self.config.descriptor_file_name) + "$")
        self.fingerprints.flush()
        return exclude

    def _check_branch(self) -> None:
        pattern = self.config.disable_if_branch_regex
        if not pattern:
            return
        branch = self.differ.current_branch()
        if branch is not None and re.search(pattern, branch):
            raise SkipRequested(f"branch '{branch}' matches '{pattern}'")

    def _source_changes_only(self, paths: Iterable[Path]) -> bool:
        suffixes = tuple(self.config.test_selector_source_suffixes)
        return all(str(p).endswith(suffixes) for p in paths)


def _log_modules(title: str, modules: Iterable[Module]) -> None:
    logger.info(title)
    for artifact_id in sorted(m.artifact_id for m in modules):
        logger.info(f"  {artifact_id}")
