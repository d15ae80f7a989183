"""Tests for core models, registry, scoring and readiness."""

import pytest

from src.core.check import (
    Category,
    Check,
    CheckExecutionResult,
    CheckResult,
    FrameworkCheck,
    FunctionCheck,
    PackageCheck,
    RemediableCheck,
    Severity,
    is_remediable,
)
from src.core.context import DetectedPackage, ManifestData, RepoContext, RiskLevel
from src.core.exceptions import ConflictError
from src.core.readiness import (
    STRICT_CATEGORY_THRESHOLDS,
    ReadinessEvaluator,
    ReadinessPolicy,
)
from src.core.registry import CheckRegistry, filter_checks, get_registry, reset_registry
from src.core.report import ReportAssembler, ScanReport
from src.core.scorer import Scorer, ScoringPolicy, grade_for

from tests.helpers import make_result, static_check


class TestSeverity:
    """Tests for Severity enum."""

    def test_severity_weight(self):
        """Test default severity weights."""
        assert Severity.BLOCKER.weight == 4
        assert Severity.HIGH.weight == 3
        assert Severity.MEDIUM.weight == 2
        assert Severity.LOW.weight == 1

    def test_severity_rank_order(self):
        """Test severities rank from blocker down to low."""
        ranks = [s.rank for s in (Severity.BLOCKER, Severity.HIGH, Severity.MEDIUM, Severity.LOW)]
        assert ranks == sorted(ranks, reverse=True)

    def test_category_values(self):
        """Test the category set and its wire names."""
        assert len(Category) == 14
        assert Category("codeQuality") is Category.CODE_QUALITY
        assert Category("repoHealth") is Category.REPO_HEALTH


class TestRepoContext:
    """Tests for the repository snapshot."""

    def test_from_camel_case_snapshot(self):
        """Test loading the camelCase snapshot shape."""
        context = RepoContext.from_dict({
            "path": "/repo",
            "packageJson": {
                "name": "web",
                "dependencies": {"react": "^18.0.0"},
                "devDependencies": {"jest": "29.0.0"},
                "scripts": {"build": "vite build"},
            },
            "hasDockerfile": True,
            "hasCI": False,
            "frameworks": ["React"],
            "detectedPackages": [
                {"name": "openai", "category": "ml", "riskLevel": "critical", "version": "4.0.0"},
            ],
            "languages": ["typescript"],
        })

        assert context.has_dockerfile is True
        assert context.has_ci is False
        assert context.has_framework("react")
        assert context.has_package("openai")
        assert context.has_language("TypeScript")
        assert context.detected_packages[0].risk_level == RiskLevel.CRITICAL
        assert context.manifest.all_dependencies() == {"react": "^18.0.0", "jest": "29.0.0"}
        assert context.manifest.extra["scripts"] == {"build": "vite build"}

    def test_context_is_read_only(self):
        """Test that checks cannot mutate the shared snapshot."""
        context = RepoContext(
            path="/repo",
            manifest=ManifestData(dependencies={"a": "1.0.0"}),
            frameworks=["django"],
        )

        assert isinstance(context.frameworks, tuple)
        with pytest.raises(TypeError):
            context.manifest.dependencies["b"] = "2.0.0"
        with pytest.raises(AttributeError):
            context.has_ci = True

    def test_round_trip_preserves_fingerprint(self):
        """Test to_dict/from_dict keeps the content fingerprint stable."""
        context = RepoContext(
            path="/repo",
            manifest=ManifestData(dependencies={"a": "1.0.0"}, extra={"name": "x"}),
            detected_packages=(DetectedPackage("torch", risk_level=RiskLevel.CRITICAL),),
            requirements_txt="torch==2.1.0\n",
        )

        restored = RepoContext.from_dict(context.to_dict())

        assert restored.fingerprint() == context.fingerprint()


class TestCheckModels:
    """Tests for check results and check base classes."""

    def test_coerce_outcomes(self):
        """Test normalizing what a check returns."""
        assert CheckExecutionResult.coerce(True).passed is True
        mapped = CheckExecutionResult.coerce({"passed": False, "autoFixable": True})
        assert mapped.passed is False
        assert mapped.auto_fixable is True
        with pytest.raises(TypeError):
            CheckExecutionResult.coerce("yes")

    def test_result_from_failure(self):
        """Test failed results keep metadata and carry the error."""
        check = static_check("sec-1", severity=Severity.BLOCKER)

        result = CheckResult.from_failure(check, RuntimeError("disk on fire"))
        empty = CheckResult.from_failure(check, KeyError())

        assert result.passed is False
        assert result.message is None
        assert result.auto_fixable is None
        assert result.error == "disk on fire"
        assert result.severity == Severity.BLOCKER
        assert empty.error == "KeyError"

    def test_result_round_trip(self):
        """Test CheckResult serialization."""
        result = make_result("doc-1", Category.DOCUMENTATION, Severity.HIGH, passed=False)

        assert CheckResult.from_dict(result.to_dict()) == result

    def test_async_detection(self):
        """Test sync and coroutine checks are told apart."""
        def sync_checker(context):
            return True

        async def async_checker(context):
            return True

        sync_check = FunctionCheck("a", "A", Category.TESTING, Severity.LOW, sync_checker)
        async_check = FunctionCheck("b", "B", Category.TESTING, Severity.LOW, async_checker)

        assert sync_check.is_async is False
        assert async_check.is_async is True

    def test_remediable_capability(self):
        """Test is_remediable for classes and function checks."""
        class Fixable(RemediableCheck):
            id = "fix-1"

            def evaluate(self, context):
                return True

            def auto_fix(self, context):
                return None

        class Plain(Check):
            id = "plain-1"

            def evaluate(self, context):
                return True

        fn_check = static_check("fn-1", fixer=lambda context: None)

        assert is_remediable(Fixable())
        assert not is_remediable(Plain())
        assert is_remediable(fn_check)
        assert Fixable().get_metadata()["remediable"] is True

    def test_framework_and_package_applicability(self):
        """Test the standard applicability rules."""
        class NextCheck(FrameworkCheck):
            id = "next-1"
            framework = "nextjs"

            def evaluate(self, context):
                return True

        class StripeCheck(PackageCheck):
            id = "stripe-1"
            package = "stripe"

            def evaluate(self, context):
                return True

        with_stack = RepoContext(
            path="/repo",
            frameworks=("NextJS",),
            detected_packages=(DetectedPackage("stripe"),),
        )
        bare = RepoContext(path="/repo")

        assert NextCheck().applies_to(with_stack)
        assert StripeCheck().applies_to(with_stack)
        assert not NextCheck().applies_to(bare)
        assert not StripeCheck().applies_to(bare)


class TestCheckRegistry:
    """Tests for CheckRegistry."""

    def test_register_and_lookup(self):
        """Test registering checks keeps registration order."""
        registry = CheckRegistry([static_check("b"), static_check("a")])

        assert len(registry) == 2
        assert "a" in registry
        assert registry.list_ids() == ["b", "a"]
        assert registry.get("a").id == "a"
        assert registry.get("missing") is None

    def test_duplicate_id_conflicts(self):
        """Test duplicate registration raises ConflictError."""
        registry = CheckRegistry([static_check("dup")])

        with pytest.raises(ConflictError) as exc_info:
            registry.register(static_check("dup"))

        assert exc_info.value.check_id == "dup"
        assert len(registry) == 1

    def test_applicable_skips_raising_predicates(self, context):
        """Test a predicate that raises marks the check not applicable."""
        def broken(ctx):
            raise RuntimeError("predicate bug")

        registry = CheckRegistry([
            static_check("one"),
            static_check("two", applies=broken),
            static_check("three", applies=lambda ctx: False),
            static_check("four", applies=lambda ctx: True),
        ])

        assert [c.id for c in registry.applicable(context)] == ["one", "four"]

    def test_metadata_counts_categories(self):
        """Test registry metadata."""
        registry = CheckRegistry([
            static_check("a", Category.SECURITY),
            static_check("b", Category.SECURITY),
            static_check("c", Category.TESTING),
        ])

        metadata = registry.get_metadata()

        assert metadata["check_count"] == 3
        assert metadata["checks_by_category"] == {"security": 2, "testing": 1}

    def test_global_registry_reset(self):
        """Test the process-wide registry can be reset."""
        get_registry().register(static_check("global-1"))
        assert "global-1" in get_registry()

        reset_registry()

        assert len(get_registry()) == 0


class TestFilterChecks:
    """Tests for filter_checks."""

    def test_filter_composition(self):
        """Test two single filters equal one combined pass."""
        checks = [
            static_check("s1", Category.SECURITY),
            static_check("s2", Category.SECURITY),
            static_check("t1", Category.TESTING),
            static_check("s3", Category.SECURITY),
        ]

        stepwise = filter_checks(
            filter_checks(checks, categories=[Category.SECURITY]),
            exclude_checks=["s2"],
        )
        reversed_steps = filter_checks(
            filter_checks(checks, exclude_checks=["s2"]),
            categories=[Category.SECURITY],
        )
        combined = filter_checks(checks, categories=[Category.SECURITY], exclude_checks=["s2"])

        assert [c.id for c in combined] == ["s1", "s3"]
        assert [c.id for c in stepwise] == [c.id for c in combined]
        assert [c.id for c in reversed_steps] == [c.id for c in combined]

    def test_empty_filters_keep_everything(self):
        """Test missing filters are no-ops."""
        checks = [static_check("a"), static_check("b")]

        assert filter_checks(checks) == checks
        assert filter_checks(checks, categories=[], exclude_checks=[]) == checks

    def test_category_names_accepted(self):
        """Test categories may be given by their wire name."""
        checks = [static_check("a", Category.DEVOPS), static_check("b", Category.TESTING)]

        assert [c.id for c in filter_checks(checks, categories=["devops"])] == ["a"]


class TestScorer:
    """Tests for Scorer class."""

    def test_all_passing_scores_100(self):
        """Test perfect score."""
        results = [
            make_result("a", Category.SECURITY, Severity.BLOCKER),
            make_result("b", Category.TESTING, Severity.LOW),
        ]

        score = Scorer().score(results)

        assert score.overall_score == 100.0
        assert score.category_scores == {Category.SECURITY: 100.0, Category.TESTING: 100.0}
        assert score.grade == "A"

    def test_severity_weighted_category_score(self):
        """Test category score is the weighted share of passes."""
        results = [
            make_result("a", Category.SECURITY, Severity.HIGH, passed=True),
            make_result("b", Category.SECURITY, Severity.LOW, passed=False),
        ]

        scores = Scorer().category_scores(results)

        assert scores[Category.SECURITY] == pytest.approx(75.0)

    def test_absent_categories_are_omitted(self):
        """Test a category without results is absent, not zero."""
        results = [make_result("a", Category.SECURITY, passed=False)]

        scores = Scorer().category_scores(results)

        assert Category.SECURITY in scores
        assert scores[Category.SECURITY] == 0.0
        assert Category.TESTING not in scores

    def test_no_results_scores_zero(self):
        """Test the overall score with no categories."""
        score = Scorer().score([])

        assert score.overall_score == 0.0
        assert score.category_scores == {}

    def test_scoring_is_idempotent(self):
        """Test scoring the same sequence twice gives identical output."""
        results = [
            make_result("a", Category.SECURITY, Severity.BLOCKER, passed=False),
            make_result("b", Category.DEVOPS, Severity.MEDIUM, passed=True),
            make_result("c", Category.DEVOPS, Severity.HIGH, passed=False),
        ]
        scorer = Scorer()

        assert scorer.score(results) == scorer.score(results)

    def test_custom_category_weights(self):
        """Test weighted overall average."""
        policy = ScoringPolicy(category_weights={Category.SECURITY: 3, Category.TESTING: 1})
        results = [
            make_result("a", Category.SECURITY, passed=True),
            make_result("b", Category.TESTING, passed=False),
        ]

        assert Scorer(policy).score(results).overall_score == pytest.approx(75.0)

    def test_blocker_penalty(self):
        """Test the optional penalty for failing blockers."""
        results = [
            make_result("a", Category.SECURITY, Severity.BLOCKER, passed=False),
            make_result("b", Category.TESTING, passed=True),
            make_result("c", Category.DEVOPS, passed=True),
        ]

        plain = Scorer().score(results).overall_score
        penalized = Scorer(ScoringPolicy(blocker_penalty=40)).score(results).overall_score

        assert plain == pytest.approx(200 / 3)
        assert penalized == pytest.approx(200 / 3 - 40)

    def test_grade_assignment(self):
        """Test letter grades."""
        assert grade_for(95) == "A"
        assert grade_for(85) == "B"
        assert grade_for(75) == "C"
        assert grade_for(65) == "D"
        assert grade_for(10) == "F"


class TestReadinessEvaluator:
    """Tests for ReadinessEvaluator."""

    def _verdict(self, results, policy=None):
        score = Scorer().score(results)
        return ReadinessEvaluator(policy).evaluate(results, score.category_scores, score.overall_score)

    def test_ready_when_all_pass(self):
        """Test a clean scan is production ready."""
        verdict = self._verdict([make_result("a"), make_result("b", Category.TESTING)])

        assert verdict.production_ready is True
        assert verdict.reasons == ()

    def test_failing_blocker_blocks(self):
        """Test a failing blocker always prevents readiness."""
        results = [make_result("sec-001", Category.SECURITY, Severity.BLOCKER, passed=False)]
        results += [make_result(f"ok-{i}", Category.SECURITY) for i in range(50)]

        verdict = self._verdict(results)

        assert verdict.production_ready is False
        assert any("sec-001" in reason for reason in verdict.reasons)

    def test_high_severity_category_reason(self):
        """Test a failing high check in a low-scoring category is reported once."""
        results = [
            make_result("h1", Category.DEVOPS, Severity.HIGH, passed=False),
            make_result("h2", Category.DEVOPS, Severity.HIGH, passed=False),
            make_result("ok", Category.DEVOPS, Severity.LOW, passed=True),
        ]

        verdict = self._verdict(results, ReadinessPolicy(overall_threshold=0))

        assert verdict.production_ready is False
        assert len(verdict.reasons) == 1
        assert "devops" in verdict.reasons[0]

    def test_high_failure_in_healthy_category_is_tolerated(self):
        """Test a high failure is fine when its category still scores well."""
        results = [make_result("h1", Category.TESTING, Severity.HIGH, passed=False)]
        results += [make_result(f"ok-{i}", Category.TESTING, Severity.HIGH) for i in range(9)]

        verdict = self._verdict(results)

        assert verdict.production_ready is True

    def test_overall_threshold(self):
        """Test the overall score threshold."""
        results = [
            make_result("a", Category.SECURITY, Severity.MEDIUM, passed=False),
            make_result("b", Category.TESTING, Severity.MEDIUM, passed=True),
        ]

        verdict = self._verdict(results)
        lenient = self._verdict(results, ReadinessPolicy(overall_threshold=50))

        assert verdict.production_ready is False
        assert "Overall score below 80" in verdict.reasons[-1]
        assert lenient.production_ready is True

    def test_strict_category_thresholds(self):
        """Test optional per-category minimums."""
        results = [make_result(f"s{i}", Category.SECURITY, Severity.MEDIUM) for i in range(5)]
        results.append(make_result("bad", Category.SECURITY, Severity.MEDIUM, passed=False))
        policy = ReadinessPolicy(overall_threshold=0, category_thresholds=STRICT_CATEGORY_THRESHOLDS)

        verdict = self._verdict(results, policy)

        assert verdict.production_ready is False
        assert verdict.reasons == ("security score below 85 (got 83.3)",)

    def test_reevaluate_stored_report(self):
        """Test readiness can be recomputed offline with a new policy."""
        results = [
            make_result("a", Category.SECURITY, passed=False),
            make_result("b", Category.TESTING, passed=True),
        ]
        score = Scorer().score(results)
        report = ReportAssembler().assemble(
            repo_path="/repo",
            results=results,
            category_scores=score.category_scores,
            overall_score=score.overall_score,
            verdict=ReadinessEvaluator().evaluate(results, score.category_scores, score.overall_score),
        )

        relaxed = ReadinessEvaluator(ReadinessPolicy(overall_threshold=40)).reevaluate(report)

        assert report.production_ready is False
        assert relaxed.production_ready is True
        assert relaxed.results == report.results
        assert relaxed is not report


class TestScanReport:
    """Tests for ScanReport."""

    def test_counts_and_round_trip(self):
        """Test summary counts and serialization."""
        results = [
            make_result("a", Category.SECURITY, Severity.BLOCKER, passed=False),
            make_result("b", Category.TESTING, passed=True),
        ]
        report = ReportAssembler().assemble(
            repo_path="/repo",
            results=results,
            category_scores={Category.SECURITY: 0.0, Category.TESTING: 100.0},
            overall_score=50.0,
        )

        assert report.passed_count == 1
        assert report.failed_count == 1
        assert report.blocker_failures == 1
        assert report.status == "Not Ready - 1 Blocking Failures"
        assert report.get_result("b").passed is True
        assert report.timestamp.endswith("+00:00")

        restored = ScanReport.from_dict(report.to_dict())

        assert restored.results == report.results
        assert restored.category_scores == report.category_scores
        assert restored.timestamp == report.timestamp

    def test_category_scores_are_read_only(self):
        """Test the score mapping cannot be changed after assembly."""
        scores = {Category.SECURITY: 40.0}
        report = ReportAssembler().assemble(
            repo_path="/repo",
            results=[make_result("a", Category.SECURITY, passed=False)],
            category_scores=scores,
            overall_score=40.0,
        )
        scores[Category.SECURITY] = 100.0

        with pytest.raises(TypeError):
            report.category_scores[Category.SECURITY] = 100.0

        assert report.category_scores[Category.SECURITY] == 40.0
        assert report.to_dict()["category_scores"] == {"security": 40.0}
