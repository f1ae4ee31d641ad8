"""Tests for ImpactAnalyzer rebuild planning."""

import pytest

from conftest import make_module
from rebuild_scope.analysis.analyzer import ImpactAnalyzer
from rebuild_scope.analysis.models import BuildView, TestDirective
from rebuild_scope.config import RebuildConfig
from rebuild_scope.exceptions import SkipRequested
from rebuild_scope.modules.models import Dependency
from rebuild_scope.state.fingerprint import FingerprintCache
from rebuild_scope.state.ledger import SkippedModuleLedger
from rebuild_scope.state.store import TextStateStore


class StubDiffer:
    """Returns preset paths and records the options it was called with."""

    def __init__(self, paths=(), branch="feature"):
        self.paths = set(paths)
        self.branch = branch
        self.calls = []

    def diff(self, options):
        self.calls.append(options)
        return {p for p in self.paths if not options.exclude.matches(p)}

    def current_branch(self):
        return self.branch


def _view(chain, active=None, current=None):
    modules = list(chain.values())
    return BuildView(
        all_modules=modules,
        active_modules=list(active if active is not None else modules),
        current_module=current or chain["parent"],
        build_root=chain["parent"].basedir,
    )


def _analyze(chain, paths, view=None, **config):
    analyzer = ImpactAnalyzer(RebuildConfig(**config), StubDiffer(paths))
    return analyzer.analyze(view or _view(chain))


class TestImpactedSet:
    """Reflexivity and transitivity of the impacted set."""

    def test_chain_example(self, chain, build_root):
        plan = _analyze(chain, [build_root / "a" / "src" / "A.java"])
        assert plan.changed_ids == {chain["a"].id}
        assert plan.impacted_ids == {chain["a"].id, chain["b"].id, chain["c"].id}
        assert plan.module_ids == [chain["a"].id, chain["b"].id, chain["c"].id]
        assert plan.goals is None
        assert not plan.validate_only

    def test_every_changed_module_is_impacted(self, chain, build_root):
        paths = [build_root / "c" / "x.java", build_root / "d" / "y.java"]
        plan = _analyze(chain, paths)
        assert plan.changed_ids <= plan.impacted_ids
        assert plan.impacted_ids == {chain["c"].id, chain["d"].id}

    def test_root_descriptor_change_impacts_children(self, chain, build_root):
        plan = _analyze(chain, [build_root / "pom.xml"])
        assert plan.impacted_ids == {m.id for m in chain.values()}

    def test_empty_commit_range_rebuilds_everything(self, chain, build_root):
        # the differ reports the build root itself for an empty range
        plan = _analyze(chain, [build_root])
        assert plan.module_ids == [m.id for m in chain.values()]

    def test_host_order_preserved(self, chain, build_root):
        active = [chain["c"], chain["b"], chain["a"], chain["d"]]
        plan = _analyze(chain, [build_root / "a" / "A.java"], view=_view(chain, active=active))
        assert plan.module_ids == [chain["c"].id, chain["b"].id, chain["a"].id]

    def test_restricted_to_active_modules(self, chain, build_root):
        view = _view(chain, active=[chain["b"], chain["c"]])
        plan = _analyze(chain, [build_root / "a" / "A.java"], view=view)
        assert chain["a"].id in plan.impacted_ids
        assert plan.module_ids == [chain["b"].id, chain["c"].id]

    def test_dependency_cycle_terminates(self, build_root):
        x = make_module(build_root, "x", deps=["y"])
        y = make_module(build_root, "y", deps=["x"])
        chain = {"parent": x, "y": y}
        plan = _analyze(chain, [build_root / "x" / "X.java"])
        assert plan.impacted_ids == {x.id, y.id}


class TestValidateOnly:
    """Empty rebuild set falls back to validating the current module."""

    def test_no_changes(self, chain):
        plan = _analyze(chain, [])
        assert plan.validate_only
        assert plan.module_ids == [chain["parent"].id]
        assert plan.goals == ["validate"]

    def test_changes_outside_modules(self, chain, tmp_path):
        plan = _analyze(chain, [tmp_path / "outside" / "notes.txt"])
        assert plan.module_ids == [chain["parent"].id]
        assert plan.goals == ["validate"]

    def test_selection_excludes_every_impacted_module(self, chain, build_root):
        view = _view(chain, active=[chain["d"]], current=chain["d"])
        plan = _analyze(chain, [build_root / "c" / "C.java"], view=view)
        assert plan.validate_only
        assert plan.module_ids == [chain["d"].id]
        assert plan.directives == {}


class TestBuildAll:
    """Build-all keeps the module list and only sets directives."""

    def test_same_cardinality(self, chain, build_root):
        plan = _analyze(chain, [build_root / "c" / "C.java"], build_all=True)
        assert len(plan.module_ids) == len(chain)
        assert plan.goals is None

    def test_directives_for_unimpacted(self, chain, build_root):
        plan = _analyze(
            chain,
            [build_root / "b" / "B.java"],
            build_all=True,
            skip_tests_for_not_impacted=True,
        )
        assert plan.directives == {
            chain["parent"].id: TestDirective.SKIP_TESTS,
            chain["a"].id: TestDirective.SKIP_TESTS,
            chain["d"].id: TestDirective.SKIP_TESTS,
        }

    def test_no_directives_without_skip_policy(self, chain, build_root):
        plan = _analyze(chain, [build_root / "b" / "B.java"], build_all=True)
        assert plan.directives == {}

    def test_build_all_with_no_changes(self, chain):
        plan = _analyze(chain, [], build_all=True, skip_tests_for_not_impacted=True)
        assert not plan.validate_only
        assert len(plan.module_ids) == len(chain)
        assert set(plan.directives) == {m.id for m in chain.values()}


class TestTestJar:
    """Modules providing a test artifact keep compiling their tests."""

    def test_skip_execution_only(self, build_root):
        parent = make_module(build_root, "parent", path=".")
        fixtures = make_module(build_root, "fixtures", goals=["jar", "test-jar"])
        service = make_module(build_root, "service")
        chain = {"parent": parent, "fixtures": fixtures, "service": service}

        plan = _analyze(
            chain,
            [build_root / "service" / "S.java"],
            build_all=True,
            skip_tests_for_not_impacted=True,
        )

        assert plan.directives[fixtures.id] is TestDirective.SKIP_TEST_EXECUTION
        assert plan.directives[parent.id] is TestDirective.SKIP_TESTS
        assert service.id not in plan.directives


class TestMakeUpstream:
    """Backward closure adds what impacted modules depend on."""

    def test_upstream_added(self, chain, build_root):
        plan = _analyze(chain, [build_root / "c" / "C.java"], make_upstream=True)
        assert plan.upstream_ids == {chain["a"].id, chain["b"].id}
        assert plan.module_ids == [chain["a"].id, chain["b"].id, chain["c"].id]

    def test_upstream_tests_skipped(self, chain, build_root):
        chain["a"].goals.append("test-jar")
        plan = _analyze(
            chain,
            [build_root / "c" / "C.java"],
            make_upstream=True,
            skip_tests_for_not_impacted=True,
        )
        assert plan.directives == {
            chain["a"].id: TestDirective.SKIP_TEST_EXECUTION,
            chain["b"].id: TestDirective.SKIP_TESTS,
        }

    def test_disabled_by_default(self, chain, build_root):
        plan = _analyze(chain, [build_root / "c" / "C.java"])
        assert plan.upstream_ids == set()
        assert plan.module_ids == [chain["c"].id]

    def test_upstream_limited_to_active_modules(self, chain, build_root):
        view = _view(chain, active=[chain["a"], chain["c"]])
        plan = _analyze(chain, [build_root / "c" / "C.java"], view=view, make_upstream=True)
        assert plan.module_ids == [chain["c"].id]


class TestSkippedLedger:
    """Modules skipped last run are retried."""

    def test_skipped_module_included(self, chain, build_root, tmp_path):
        ledger_path = tmp_path / "skipped.txt"
        ledger_path.write_text(f"{chain['d'].id}\n")
        ledger = SkippedModuleLedger(TextStateStore(ledger_path))
        analyzer = ImpactAnalyzer(
            RebuildConfig(), StubDiffer([build_root / "c" / "C.java"]), ledger=ledger
        )

        plan = analyzer.analyze(_view(chain))

        assert plan.module_ids == [chain["c"].id, chain["d"].id]

    def test_skipped_module_avoids_validate_only(self, chain, tmp_path):
        ledger_path = tmp_path / "skipped.txt"
        ledger_path.write_text(f"{chain['b'].id}\n")
        ledger = SkippedModuleLedger(TextStateStore(ledger_path))
        analyzer = ImpactAnalyzer(RebuildConfig(), StubDiffer([]), ledger=ledger)

        plan = analyzer.analyze(_view(chain))

        assert not plan.validate_only
        assert plan.module_ids == [chain["b"].id]


class TestFingerprintExclusion:
    """An unchanged dependency fingerprint hides descriptor edits."""

    def _run(self, chain, tmp_path, paths):
        differ = StubDiffer(paths)
        cache = FingerprintCache(TextStateStore(tmp_path / "fingerprint.txt"))
        analyzer = ImpactAnalyzer(RebuildConfig(), differ, fingerprints=cache)
        return analyzer.analyze(_view(chain)), differ.calls[-1]

    def test_first_run_keeps_descriptor(self, chain, build_root, tmp_path):
        plan, options = self._run(chain, tmp_path, [build_root / "d" / "pom.xml"])
        assert not options.exclude.matches(build_root / "d" / "pom.xml")
        assert plan.module_ids == [chain["d"].id]
        assert (tmp_path / "fingerprint.txt").exists()

    def test_unchanged_fingerprint_excludes_descriptor(self, chain, build_root, tmp_path):
        self._run(chain, tmp_path, [])
        plan, options = self._run(chain, tmp_path, [build_root / "d" / "pom.xml"])
        assert options.exclude.matches(build_root / "d" / "pom.xml")
        assert plan.validate_only

    def test_changed_dependency_keeps_descriptor(self, chain, build_root, tmp_path):
        self._run(chain, tmp_path, [])
        chain["d"].dependencies.append(Dependency.parse("org.slf4j:slf4j-api:2.0.9"))
        plan, options = self._run(chain, tmp_path, [build_root / "d" / "pom.xml"])
        assert not options.exclude.matches(build_root / "d" / "pom.xml")
        assert plan.module_ids == [chain["d"].id]


class TestBranchSkip:
    def test_matching_branch_requests_skip(self, chain):
        analyzer = ImpactAnalyzer(
            RebuildConfig(disable_if_branch_regex="^release/"), StubDiffer(branch="release/1.2")
        )
        with pytest.raises(SkipRequested):
            analyzer.analyze(_view(chain))

    def test_other_branch_runs(self, chain):
        analyzer = ImpactAnalyzer(
            RebuildConfig(disable_if_branch_regex="^release/"), StubDiffer(branch="feature/x")
        )
        assert analyzer.analyze(_view(chain)).validate_only

    def test_detached_head_runs(self, chain):
        analyzer = ImpactAnalyzer(
            RebuildConfig(disable_if_branch_regex=".*"), StubDiffer(branch=None)
        )
        assert analyzer.analyze(_view(chain)).validate_only


class TestTestSelector:
    def test_disabled_by_default(self, chain, build_root):
        assert _analyze(chain, [build_root / "a" / "A.java"]).test_selector is None

    def test_source_only_changes(self, chain, build_root):
        plan = _analyze(chain, [build_root / "a" / "A.java"], use_test_selector=True)
        assert plan.test_selector.force_all is False

    def test_other_changes_force_all(self, chain, build_root):
        plan = _analyze(
            chain,
            [build_root / "a" / "A.java", build_root / "a" / "pom.xml"],
            use_test_selector=True,
        )
        assert plan.test_selector.force_all is True


class TestPlanSerialization:
    def test_to_dict(self, chain, build_root):
        plan = _analyze(
            chain, [build_root / "c" / "C.java"], make_upstream=True, skip_tests_for_not_impacted=True
        )
        data = plan.to_dict()
        assert data["modules"] == [chain["a"].id, chain["b"].id, chain["c"].id]
        assert data["directives"] == {
            chain["a"].id: "maven.test.skip",
            chain["b"].id: "maven.test.skip",
        }
        assert data["changed_modules"] == [chain["c"].id]
        assert data["test_selector"] is None
