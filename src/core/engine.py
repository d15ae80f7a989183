"""Scan Engine Module - Runs a full health scan of a repository context."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .cache import ResultCache
from .check import Category, Severity
from .exceptions import EmptyCatalogError, MissingContextError
from .context import RepoContext
from .parallel_executor import (
    DEFAULT_CHECK_TIMEOUT,
    DEFAULT_MAX_CONCURRENCY,
    CheckExecutor,
    ExecutionOptions,
    ProgressCallback,
)
from .quick_wins import DEFAULT_QUICK_WIN_LIMIT, QuickWinFinder
from .readiness import ReadinessEvaluator
from .registry import CheckRegistry, filter_checks, get_registry
from .report import ReportAssembler, ScanReport
from .scorer import Scorer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOptions:
    """Options of a single scan invocation."""
    parallel: bool = True
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    enable_cache: bool = True
    timeout: float = DEFAULT_CHECK_TIMEOUT
    categories: Optional[Sequence[Category]] = None
    exclude_checks: Optional[Sequence[str]] = None
    min_severity: Optional[Severity] = None
    include_quick_wins: bool = True
    quick_win_limit: int = DEFAULT_QUICK_WIN_LIMIT

    def execution_options(self) -> ExecutionOptions:
        """Get the executor's share of these options."""
        return ExecutionOptions(
            parallel=self.parallel,
            max_concurrency=self.max_concurrency,
            enable_cache=self.enable_cache,
            timeout=self.timeout,
        )


class ScanEngine:
    """Wires registry, executor, scorer and readiness into one scan."""

    def __init__(
        self,
        registry: Optional[CheckRegistry] = None,
        cache: Optional[ResultCache] = None,
        scorer: Optional[Scorer] = None,
        evaluator: Optional[ReadinessEvaluator] = None,
        assembler: Optional[ReportAssembler] = None,
    ):
        """Initialize the engine.

        Args:
            registry: Check catalog (the process-wide registry if omitted)
            cache: Cache shared with checks across scans
            scorer: Scorer with the scoring policy
            evaluator: Readiness evaluator with the readiness policy
            assembler: Report assembler
        """
        self.registry = registry if registry is not None else get_registry()
        self.executor = CheckExecutor(cache=cache)
        self.scorer = scorer or Scorer()
        self.evaluator = evaluator or ReadinessEvaluator()
        self.assembler = assembler or ReportAssembler()

    @property
    def cache(self) -> ResultCache:
        return self.executor.cache

    async def run(
        self,
        context: RepoContext,
        options: Optional[ScanOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ScanReport:
        """Scan a repository context.

        Args:
            context: Repository snapshot
            options: Scan options
            progress_callback: Optional per-check progress callback

        Returns:
            The scan report

        Raises:
            MissingContextError: If no context was supplied
            EmptyCatalogError: If the registry has no checks
        """
        if context is None:
            raise MissingContextError()
        if len(self.registry) == 0:
            raise EmptyCatalogError()

        options = options or ScanOptions()

        checks = filter_checks(
            self.registry.applicable(context),
            categories=options.categories,
            exclude_checks=options.exclude_checks,
        )
        if options.min_severity is not None:
            checks = [c for c in checks if c.severity.rank >= options.min_severity.rank]

        logger.info(
            "Running %d of %d checks against %s",
            len(checks), len(self.registry), context.path,
        )

        results = await self.executor.run(
            checks, context, options.execution_options(), progress_callback
        )

        score = self.scorer.score(results)
        verdict = self.evaluator.evaluate(
            results, score.category_scores, score.overall_score
        )

        quick_wins = []
        if options.include_quick_wins:
            finder = QuickWinFinder(self.scorer, limit=options.quick_win_limit)
            quick_wins = finder.find(results, {c.id: c for c in checks})

        report = self.assembler.assemble(
            repo_path=context.path,
            results=results,
            category_scores=score.category_scores,
            overall_score=score.overall_score,
            verdict=verdict,
            quick_wins=quick_wins,
        )
        logger.info(
            "Scan of %s finished: score %.1f, production ready: %s",
            context.path, report.score, report.production_ready,
        )
        return report

    def run_sync(
        self,
        context: RepoContext,
        options: Optional[ScanOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ScanReport:
        """Blocking wrapper around ``run``."""
        return asyncio.run(self.run(context, options, progress_callback))


async def run_all_checks(
    context: RepoContext,
    options: Optional[ScanOptions] = None,
    registry: Optional[CheckRegistry] = None,
    cache: Optional[ResultCache] = None,
    scorer: Optional[Scorer] = None,
    evaluator: Optional[ReadinessEvaluator] = None,
) -> ScanReport:
    """Run every applicable check against a context and build the report.

    Args:
        context: Repository snapshot
        options: Scan options
        registry: Check catalog (the process-wide registry if omitted)
        cache: Cache for checks to share
        scorer: Scorer with the scoring policy
        evaluator: Readiness evaluator with the readiness policy

    Returns:
        The scan report
    """
    engine = ScanEngine(registry=registry, cache=cache, scorer=scorer, evaluator=evaluator)
    return await engine.run(context, options)
