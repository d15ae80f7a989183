"""Tests for the executor, cache and scan engine."""

import asyncio
import threading
import time

import pytest

from src.core.cache import ResultCache, active_cache, fingerprint, using_cache
from src.core.check import Category, CheckExecutionResult, FunctionCheck, Severity
from src.core.engine import ScanEngine, ScanOptions, run_all_checks
from src.core.exceptions import EmptyCatalogError, MissingContextError
from src.core.parallel_executor import CheckExecutor, ExecutionOptions, chunk_checks
from src.core.registry import CheckRegistry, get_registry

from tests.helpers import raising_check, static_check


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestResultCache:
    """Tests for ResultCache."""

    def test_clear_set_and_expire(self):
        """Test the clear/set/expiry lifecycle."""
        clock = FakeClock()
        cache = ResultCache(ttl=300, clock=clock)
        cache.set("stale", "x")

        cache.clear()
        assert cache.stats()["size"] == 0

        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.stats()["size"] == 2
        assert sorted(cache.stats()["keys"]) == ["a", "b"]

        clock.advance(301)
        assert cache.get("a") is None
        assert "a" not in cache
        # Expired entries stay stored until overwritten or cleared.
        assert cache.stats()["size"] == 2

    def test_entry_alive_within_ttl(self):
        """Test an entry is served before its TTL elapses."""
        clock = FakeClock()
        cache = ResultCache(ttl=10, clock=clock)
        cache.set("k", {"v": 1})

        clock.advance(9.5)

        assert cache.get("k") == {"v": 1}

    def test_overwrite_refreshes_entry(self):
        """Test set replaces content and insertion time."""
        clock = FakeClock()
        cache = ResultCache(ttl=10, clock=clock)
        cache.set("k", "old")
        clock.advance(8)
        cache.set("k", "new")
        clock.advance(8)

        assert cache.get("k") == "new"

    def test_get_or_compute(self):
        """Test compute-once behavior."""
        cache = ResultCache()
        calls = []

        def factory():
            calls.append(1)
            return "value"

        assert cache.get_or_compute("k", factory) == "value"
        assert cache.get_or_compute("k", factory) == "value"
        assert len(calls) == 1

    def test_fingerprint_is_stable(self):
        """Test fingerprints depend only on content."""
        assert fingerprint("a", 1, {"x": 2}) == fingerprint("a", 1, {"x": 2})
        assert fingerprint("a", 1) != fingerprint("a", 2)

    def test_using_cache_scopes_active_cache(self):
        """Test the active cache is only visible inside the block."""
        cache = ResultCache()

        assert active_cache() is None
        with using_cache(cache):
            assert active_cache() is cache
        assert active_cache() is None

    def test_negative_ttl_rejected(self):
        """Test invalid TTL."""
        with pytest.raises(ValueError):
            ResultCache(ttl=-1)


class TestCheckExecutor:
    """Tests for CheckExecutor."""

    def _mixed_checks(self):
        def sync_pass(context):
            return CheckExecutionResult(passed=True, message="sync")

        async def slow_async_fail(context):
            await asyncio.sleep(0.02)
            return CheckExecutionResult(passed=False, message="slow")

        return [
            FunctionCheck("c1", "C1", Category.SECURITY, Severity.HIGH, slow_async_fail),
            FunctionCheck("c2", "C2", Category.TESTING, Severity.LOW, sync_pass),
            static_check("c3", Category.DEVOPS, passed=False),
            static_check("c4", Category.DEVOPS, passed=True),
            raising_check("c5", ValueError("boom")),
        ]

    def test_parallel_matches_sequential(self, context):
        """Test both modes give the same results in input order."""
        checks = self._mixed_checks()
        executor = CheckExecutor()

        parallel = executor.run_sync(checks, context, ExecutionOptions(parallel=True, max_concurrency=2))
        sequential = executor.run_sync(checks, context, ExecutionOptions(parallel=False))

        expected_ids = ["c1", "c2", "c3", "c4", "c5"]
        assert [r.check_id for r in parallel] == expected_ids
        assert [r.check_id for r in sequential] == expected_ids
        assert {r.check_id: r.passed for r in parallel} == {r.check_id: r.passed for r in sequential}

    def test_failure_isolation(self, context):
        """Test a raising check yields one failed result and others still run."""
        checks = [
            static_check("ok-1"),
            raising_check("bad", RuntimeError("exploded")),
            static_check("ok-2"),
        ]

        results = CheckExecutor().run_sync(checks, context)

        assert len(results) == 3
        bad = results[1]
        assert bad.passed is False
        assert bad.error == "exploded"
        assert bad.message is None
        assert bad.auto_fixable is None
        assert results[0].passed and results[2].passed
        assert results[0].error is None

    def test_timeout_yields_failed_result(self, context):
        """Test a check exceeding its time box fails with a timeout error."""
        async def hangs(context):
            await asyncio.sleep(5)
            return True

        checks = [
            FunctionCheck("slow", "Slow", Category.PERFORMANCE, Severity.MEDIUM, hangs),
            static_check("fast"),
        ]

        results = CheckExecutor().run_sync(checks, context, ExecutionOptions(timeout=0.05))

        assert results[0].passed is False
        assert results[0].error == "Check timed out after 0.05s"
        assert results[1].passed is True

    @pytest.mark.parametrize("parallel", [True, False])
    def test_hung_blocking_check_does_not_starve_later_checks(self, context, parallel):
        """Test a timed-out sync check leaves the following checks their full time box."""
        def hangs(context):
            time.sleep(1.0)
            return True

        def quick(context):
            return True

        checks = [
            FunctionCheck("stuck", "Stuck", Category.PERFORMANCE, Severity.MEDIUM, hangs),
            FunctionCheck("quick", "Quick", Category.PERFORMANCE, Severity.MEDIUM, quick),
        ]
        options = ExecutionOptions(parallel=parallel, max_concurrency=1, timeout=0.2)

        results = CheckExecutor().run_sync(checks, context, options)

        assert results[0].error == "Check timed out after 0.2s"
        assert results[1].passed is True
        assert results[1].error is None

    def test_cancelled_check_is_captured(self, context):
        """Test a check raising CancelledError fails alone."""
        async def cancelled(context):
            raise asyncio.CancelledError()

        checks = [
            FunctionCheck("gone", "Gone", Category.TESTING, Severity.HIGH, cancelled),
            static_check("ok"),
        ]

        results = CheckExecutor().run_sync(checks, context)

        assert results[0].passed is False
        assert results[0].error == "Check was cancelled"
        assert results[1].passed is True

    def test_blocking_checks_run_concurrently(self, context):
        """Test sync checks in one group run on parallel threads."""
        barrier = threading.Barrier(3, timeout=5)

        def waits_for_peers(context):
            barrier.wait()
            return True

        checks = [
            FunctionCheck(f"b{i}", f"B{i}", Category.TESTING, Severity.LOW, waits_for_peers)
            for i in range(3)
        ]

        results = CheckExecutor().run_sync(checks, context, ExecutionOptions(max_concurrency=3))

        assert all(r.passed for r in results)

    def test_groups_bound_concurrency(self, context):
        """Test no more than max_concurrency checks run at once."""
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}

        def tracked(context):
            with lock:
                state["running"] += 1
                state["peak"] = max(state["peak"], state["running"])
            time.sleep(0.02)
            with lock:
                state["running"] -= 1
            return True

        checks = [
            FunctionCheck(f"t{i}", f"T{i}", Category.TESTING, Severity.LOW, tracked)
            for i in range(7)
        ]

        results = CheckExecutor().run_sync(checks, context, ExecutionOptions(max_concurrency=3))

        assert len(results) == 7
        assert state["peak"] <= 3

    def test_cache_visible_in_worker_threads(self, context):
        """Test sync and async checks both see the run's cache."""
        def sync_sees_cache(context):
            return active_cache() is not None

        async def async_sees_cache(context):
            return active_cache() is not None

        checks = [
            FunctionCheck("s", "S", Category.TESTING, Severity.LOW, sync_sees_cache),
            FunctionCheck("a", "A", Category.TESTING, Severity.LOW, async_sees_cache),
        ]
        executor = CheckExecutor()

        enabled = executor.run_sync(checks, context, ExecutionOptions(enable_cache=True))
        disabled = executor.run_sync(checks, context, ExecutionOptions(enable_cache=False))

        assert [r.passed for r in enabled] == [True, True]
        assert [r.passed for r in disabled] == [False, False]

    def test_progress_callback(self, context):
        """Test progress is reported once per check."""
        calls = []
        checks = [static_check("p1"), static_check("p2"), static_check("p3")]

        CheckExecutor().run_sync(
            checks, context, progress_callback=lambda done, total, cid: calls.append((done, total, cid))
        )

        assert [c[0] for c in calls] == [1, 2, 3]
        assert all(c[1] == 3 for c in calls)
        assert sorted(c[2] for c in calls) == ["p1", "p2", "p3"]

    def test_failing_progress_callback_does_not_abort(self, context):
        """Test an exception in the progress callback is only logged."""
        def broken(done, total, check_id):
            raise RuntimeError("display closed")

        results = CheckExecutor().run_sync(
            [static_check("p1"), static_check("p2")], context, progress_callback=broken
        )

        assert [r.passed for r in results] == [True, True]

    def test_invalid_options(self):
        """Test option validation."""
        with pytest.raises(ValueError):
            ExecutionOptions(max_concurrency=0)
        with pytest.raises(ValueError):
            ExecutionOptions(timeout=0)

    def test_empty_input(self, context):
        """Test running no checks."""
        assert CheckExecutor().run_sync([], context) == []

    def test_chunk_checks(self):
        """Test grouping into consecutive chunks."""
        checks = [static_check(str(i)) for i in range(5)]

        groups = chunk_checks(checks, 2)

        assert [[c.id for c in g] for g in groups] == [["0", "1"], ["2", "3"], ["4"]]


class TestScanEngine:
    """Tests for ScanEngine."""

    def test_three_check_scenario(self, context):
        """Test one failing blocker with two passing checks."""
        registry = CheckRegistry([
            static_check("A", Category.SECURITY, Severity.BLOCKER, passed=False),
            static_check("B", Category.CODE_QUALITY, Severity.LOW, passed=True),
            static_check("C", Category.DEVOPS, Severity.MEDIUM, passed=True),
        ])

        report = ScanEngine(registry).run_sync(context)

        assert len(report.results) == 3
        assert report.category_scores == {
            Category.CODE_QUALITY: 100.0,
            Category.SECURITY: 0.0,
            Category.DEVOPS: 100.0,
        }
        assert report.score == pytest.approx(200 / 3)
        assert report.production_ready is False
        assert any("(A)" in reason for reason in report.readiness_reasons)
        assert report.repo_path == context.path

    def test_filters_and_min_severity(self, context):
        """Test category, exclusion and severity filtering before execution."""
        registry = CheckRegistry([
            static_check("s-high", Category.SECURITY, Severity.HIGH),
            static_check("s-low", Category.SECURITY, Severity.LOW),
            static_check("s-skip", Category.SECURITY, Severity.BLOCKER),
            static_check("t-high", Category.TESTING, Severity.HIGH),
        ])
        options = ScanOptions(
            categories=[Category.SECURITY],
            exclude_checks=["s-skip"],
            min_severity=Severity.MEDIUM,
        )

        report = ScanEngine(registry).run_sync(context, options)

        assert [r.check_id for r in report.results] == ["s-high"]
        assert list(report.category_scores) == [Category.SECURITY]

    def test_quick_wins_in_report(self, context):
        """Test auto-fixable failures become quick wins."""
        async def fixable_fail(context):
            return CheckExecutionResult(passed=False, auto_fixable=True)

        registry = CheckRegistry([
            FunctionCheck(
                "doc-x", "Docs", Category.DOCUMENTATION, Severity.HIGH, fixable_fail,
                fixer=lambda context: None, remediation="Write the docs.",
            ),
            static_check("sec-x", Category.SECURITY, Severity.HIGH, passed=False),
        ])

        report = ScanEngine(registry).run_sync(context)
        without = ScanEngine(registry).run_sync(context, ScanOptions(include_quick_wins=False))

        assert len(report.quick_wins) == 1
        win = report.quick_wins[0]
        assert win.check.check_id == "doc-x"
        assert win.points == pytest.approx(50.0)
        assert win.instructions == "Write the docs."
        assert win.effort.value == "low"
        assert without.quick_wins == ()

    def test_missing_context(self):
        """Test scanning without a context."""
        engine = ScanEngine(CheckRegistry([static_check("a")]))

        with pytest.raises(MissingContextError):
            engine.run_sync(None)

    def test_empty_catalog(self, context):
        """Test scanning with no registered checks."""
        with pytest.raises(EmptyCatalogError):
            ScanEngine(CheckRegistry()).run_sync(context)

    def test_run_all_checks_uses_global_registry(self, context):
        """Test the module-level entry point."""
        get_registry().register(static_check("g1", Category.TESTING))

        report = asyncio.run(run_all_checks(context))

        assert [r.check_id for r in report.results] == ["g1"]
        assert report.production_ready is True

    def test_cache_shared_across_scans(self, context):
        """Test an engine's cache persists between runs."""
        cache = ResultCache()
        calls = []

        def cached_check(context):
            value = active_cache().get_or_compute("expensive", lambda: calls.append(1) or "v")
            return value == "v"

        registry = CheckRegistry([
            FunctionCheck("c", "C", Category.TESTING, Severity.LOW, cached_check),
        ])
        engine = ScanEngine(registry, cache=cache)

        engine.run_sync(context)
        engine.run_sync(context)

        assert len(calls) == 1
        assert engine.cache is cache
