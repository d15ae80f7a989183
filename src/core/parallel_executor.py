"""Parallel Executor Module - Runs checks under a concurrency budget."""

import asyncio
import contextvars
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from .cache import ResultCache, using_cache
from .check import Check, CheckExecutionResult, CheckResult
from .context import RepoContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_CHECK_TIMEOUT = 60.0

ProgressCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class ExecutionOptions:
    """Options controlling how checks are executed."""
    parallel: bool = True
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    enable_cache: bool = True
    timeout: float = DEFAULT_CHECK_TIMEOUT

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


def chunk_checks(checks: Sequence[Check], size: int) -> List[List[Check]]:
    """Partition checks into consecutive groups of at most ``size``."""
    return [list(checks[i:i + size]) for i in range(0, len(checks), size)]


class CheckExecutor:
    """Executes checks against a repository context.

    Every check yields exactly one CheckResult: exceptions and timeouts are
    captured into a failed result and never abort the run.
    """

    def __init__(self, cache: Optional[ResultCache] = None):
        """Initialize the executor.

        Args:
            cache: Cache made available to checks when caching is enabled
                (a fresh one is created if omitted)
        """
        self.cache = cache if cache is not None else ResultCache()

    async def run(
        self,
        checks: Sequence[Check],
        context: RepoContext,
        options: Optional[ExecutionOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[CheckResult]:
        """Run checks and collect their results in input order.

        Args:
            checks: Checks to run
            context: Repository snapshot shared by all checks
            options: Execution options
            progress_callback: Optional callback called with
                (completed_count, total_count, check_id) after each check

        Returns:
            One CheckResult per input check, in input order
        """
        options = options or ExecutionOptions()
        checks = list(checks)
        total = len(checks)
        results: List[Optional[CheckResult]] = [None] * total
        completed = 0

        if not checks:
            return []

        async def run_slot(index: int, check: Check) -> None:
            nonlocal completed
            results[index] = await self._run_check(check, context, options.timeout)
            completed += 1
            if progress_callback:
                try:
                    progress_callback(completed, total, check.id)
                except Exception as e:
                    logger.warning("Progress callback failed after %s: %s", check.id, e)

        with using_cache(self.cache if options.enable_cache else None):
            if options.parallel and total > 1:
                groups = chunk_checks(checks, options.max_concurrency)
                offset = 0
                for number, group in enumerate(groups, start=1):
                    logger.debug(
                        "Running check group %d/%d (%d checks)",
                        number, len(groups), len(group),
                    )
                    await asyncio.gather(*(
                        run_slot(offset + i, check) for i, check in enumerate(group)
                    ))
                    offset += len(group)
            else:
                for index, check in enumerate(checks):
                    await run_slot(index, check)

        return [r for r in results if r is not None]

    def run_sync(
        self,
        checks: Sequence[Check],
        context: RepoContext,
        options: Optional[ExecutionOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[CheckResult]:
        """Blocking wrapper around ``run``."""
        return asyncio.run(self.run(checks, context, options, progress_callback))

    async def _run_check(
        self,
        check: Check,
        context: RepoContext,
        timeout: float,
    ) -> CheckResult:
        """Run one check inside an error boundary."""
        started = time.perf_counter()
        try:
            outcome = await asyncio.wait_for(self._evaluate(check, context), timeout=timeout)
            result = CheckResult.from_check(
                check, CheckExecutionResult.coerce(outcome), _elapsed_ms(started)
            )
        except asyncio.TimeoutError:
            logger.warning("Check %s timed out after %ss", check.id, timeout)
            result = CheckResult.from_failure(
                check, f"Check timed out after {timeout:g}s", _elapsed_ms(started)
            )
        except asyncio.CancelledError:
            # Cancellation of the scan itself must propagate.
            if _is_cancelling(asyncio.current_task()):
                raise
            logger.warning("Check %s was cancelled", check.id)
            result = CheckResult.from_failure(check, "Check was cancelled", _elapsed_ms(started))
        except Exception as e:
            logger.warning("Check %s failed: %s", check.id, e)
            result = CheckResult.from_failure(check, e, _elapsed_ms(started))
        return result

    async def _evaluate(self, check: Check, context: RepoContext) -> object:
        if check.is_async:
            return await check.evaluate(context)

        outcome = await _run_in_thread(check, context)
        if asyncio.iscoroutine(outcome):
            outcome = await outcome
        return outcome


def _run_in_thread(check: Check, context: RepoContext) -> "asyncio.Future[Any]":
    """Run a blocking evaluate on its own daemon thread.

    The thread starts immediately, so the time box never covers queueing
    behind an earlier check. A thread that outlives its time box is
    abandoned and does not hold up interpreter exit. The contextvars are
    copied so active_cache() resolves in the thread too.
    """
    loop = asyncio.get_running_loop()
    future: "asyncio.Future[Any]" = loop.create_future()
    ctx = contextvars.copy_context()

    def target() -> None:
        try:
            outcome = ctx.run(check.evaluate, context)
        except BaseException as e:
            _deliver(loop, future, None, e)
        else:
            _deliver(loop, future, outcome, None)

    threading.Thread(target=target, name=f"check-{check.id}", daemon=True).start()
    return future


def _deliver(
    loop: asyncio.AbstractEventLoop,
    future: "asyncio.Future[Any]",
    outcome: Any,
    error: Optional[BaseException],
) -> None:
    try:
        loop.call_soon_threadsafe(_settle, future, outcome, error)
    except RuntimeError:
        # The loop closed before a timed-out check finished.
        logger.debug("Discarding late result of an abandoned check")


def _settle(future: "asyncio.Future[Any]", outcome: Any, error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(outcome)


def _is_cancelling(task: Optional["asyncio.Task[Any]"]) -> bool:
    """Whether ``task`` has a pending cancellation request (Python 3.11+)."""
    cancelling = getattr(task, "cancelling", None)
    return bool(cancelling and cancelling())


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
