"""Host build integration.

Bridges a host build session and the impact analysis: builds the analysis
inputs from the session, applies the resulting plan back to it, and records
skipped modules once the build has finished.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .analysis.analyzer import ImpactAnalyzer
from .analysis.models import BuildView, RebuildPlan
from .config import RebuildConfig
from .exceptions import BuildIntegrationError, RebuildScopeError, SkipRequested
from .logging_config import get_logger
from .modules.models import Module
from .state.fingerprint import FingerprintCache
from .state.ledger import SkippedModuleLedger
from .state.store import TextStateStore
from .vcs.differ import RevisionDiffer

logger = get_logger(__name__)

TEST_SELECTOR_GROUP = "org.ekstazi"
TEST_SELECTOR_ARTIFACT = "ekstazi-maven-plugin"
TEST_SELECTOR_VERSION = "5.2.0"


@dataclass
class PluginDescriptor:
    """A build plugin execution added to a module by the host layer."""

    group_id: str
    artifact_id: str
    version: str
    execution_id: str
    goals: list[str]
    configuration: dict[str, str] = field(default_factory=dict)


@dataclass
class BuildSummary:
    """Outcome the host recorded for one module."""

    module_id: str
    success: bool = True
    duration_ms: int = 0


@dataclass
class BuildSession:
    """The parts of a host build session the analysis reads and rewrites."""

    all_modules: list[Module]
    modules: list[Module]  # active modules, in build order
    current_module: Module
    top_level_module: Module
    goals: list[str] = field(default_factory=list)
    summaries: dict[str, BuildSummary] = field(default_factory=dict)
    plugins: dict[str, list[PluginDescriptor]] = field(default_factory=dict)

    @classmethod
    def from_modules(cls, modules: list[Module], current: Optional[Module] = None, goals=None):
        """Session building every module, started from ``current`` (default: first)."""
        current = current or modules[0]
        return cls(
            all_modules=list(modules),
            modules=list(modules),
            current_module=current,
            top_level_module=modules[0],
            goals=list(goals or ["install"]),
        )

    def view(self) -> BuildView:
        return BuildView(
            all_modules=list(self.all_modules),
            active_modules=list(self.modules),
            current_module=self.current_module,
            build_root=Path(self.top_level_module.basedir),
            goals=list(self.goals),
        )


def apply_plan(session: BuildSession, plan: RebuildPlan) -> None:
    """Rewrite ``session`` according to ``plan``."""
    by_id = {m.id: m for m in session.all_modules}
    by_id.setdefault(session.current_module.id, session.current_module)

    session.modules = [by_id[module_id] for module_id in plan.module_ids if module_id in by_id]
    if plan.goals is not None:
        session.goals[:] = plan.goals

    for module_id, directive in plan.directives.items():
        module = by_id.get(module_id)
        if module is not None:
            module.properties[directive.value] = "true"

    if plan.test_selector is not None:
        for module in session.modules:
            session.plugins.setdefault(module.id, []).append(
                _test_selector_plugin(plan.test_selector.force_all)
            )


def _test_selector_plugin(force_all: bool) -> PluginDescriptor:
    return PluginDescriptor(
        group_id=TEST_SELECTOR_GROUP,
        artifact_id=TEST_SELECTOR_ARTIFACT,
        version=TEST_SELECTOR_VERSION,
        execution_id="ekstazi",
        goals=["select"],
        configuration={"forceall": "true"} if force_all else {},
    )


class LifecycleParticipant:
    """Hooks the analysis into the host build's lifecycle.

    Usage:
        participant = LifecycleParticipant(config)
        participant.after_modules_read(session)   # before the build
        ...                                       # host builds session.modules
        participant.after_session_end(session)    # after the build
    """

    def __init__(self, config: RebuildConfig, differ: Optional[RevisionDiffer] = None):
        self.config = config
        self.differ = differ
        self.ledger = SkippedModuleLedger(TextStateStore(config.skipped_modules_path))
        self.plan: Optional[RebuildPlan] = None

    def after_modules_read(self, session: BuildSession) -> Optional[RebuildPlan]:
        """Analyze and apply. Returns the applied plan, or None if nothing was changed."""
        if not self.config.enabled:
            logger.info("rebuild-scope is disabled.")
            return None

        logger.info("rebuild-scope starting...")
        try:
            self.plan = self._analyzer(session).analyze(session.view())
        except SkipRequested as e:
            logger.info(f"rebuild-scope execution skipped: {e}")
            return None
        except RebuildScopeError as e:
            if self.config.fail_on_error:
                raise BuildIntegrationError(f"Exception during rebuild-scope execution occurred: {e}")
            logger.info(f"rebuild-scope execution skipped: {e}")
            logger.debug("Full exception:", exc_info=True)
            return None
        except Exception as e:
            # Same policy for failures outside the rebuild-scope hierarchy.
            if self.config.fail_on_error:
                raise BuildIntegrationError(
                    f"Exception during rebuild-scope execution occurred: {e!r}"
                ) from e
            logger.warning(f"rebuild-scope execution skipped: {e!r}")
            logger.debug("Full exception:", exc_info=True)
            return None

        apply_plan(session, self.plan)
        logger.info("rebuild-scope exiting...")
        return self.plan

    def after_session_end(self, session: BuildSession) -> list[str]:
        """Record modules of this build that produced no summary."""
        if not self.config.enabled or not self.ledger.store.enabled:
            return []
        skipped = self.ledger.record(session.modules, session.summaries)
        self.ledger.flush()
        return skipped

    def _analyzer(self, session: BuildSession) -> ImpactAnalyzer:
        differ = self.differ or RevisionDiffer(Path(session.top_level_module.basedir))
        fingerprints = None
        if self.config.fingerprint_path is not None:
            fingerprints = FingerprintCache(TextStateStore(self.config.fingerprint_path))
        ledger = self.ledger if self.ledger.store.enabled else None
        return ImpactAnalyzer(self.config, differ, fingerprints=fingerprints, ledger=ledger)
