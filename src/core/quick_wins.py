"""Quick Wins Module - Cheap fixes with the largest score payoff."""

from dataclasses import replace
from typing import List, Mapping, Optional, Sequence

from .check import Check, CheckResult, Severity, is_remediable
from .report import Effort, QuickWin
from .scorer import Scorer

DEFAULT_QUICK_WIN_LIMIT = 5


class QuickWinFinder:
    """Finds failed, auto-fixable checks and ranks them by score gain."""

    def __init__(self, scorer: Optional[Scorer] = None, limit: int = DEFAULT_QUICK_WIN_LIMIT):
        """Initialize the finder.

        Args:
            scorer: Scorer used to estimate point gains
            limit: Maximum number of quick wins returned
        """
        self.scorer = scorer or Scorer()
        self.limit = limit

    def find(
        self,
        results: Sequence[CheckResult],
        checks_by_id: Optional[Mapping[str, Check]] = None,
    ) -> List[QuickWin]:
        """Find quick wins among check results.

        Args:
            results: Check results of a scan
            checks_by_id: Catalog entries, used for remediation text and to
                tell whether a check can fix itself

        Returns:
            Quick wins, highest point value first
        """
        checks_by_id = checks_by_id or {}
        results = list(results)
        baseline = self.scorer.score(results).overall_score

        candidates = []
        for index, result in enumerate(results):
            if result.passed or not result.auto_fixable:
                continue
            check = checks_by_id.get(result.check_id)

            what_if = list(results)
            what_if[index] = replace(result, passed=True, error=None)
            points = max(0.0, self.scorer.score(what_if).overall_score - baseline)

            candidates.append((index, QuickWin(
                check=result,
                effort=self._estimate_effort(result, check),
                points=points,
                instructions=self._instructions(result, check),
            )))

        candidates.sort(key=lambda item: (-item[1].points, item[0]))
        return [win for _, win in candidates[:self.limit]]

    def _estimate_effort(self, result: CheckResult, check: Optional[Check]) -> Effort:
        if check is not None and is_remediable(check):
            return Effort.LOW
        if result.severity == Severity.BLOCKER:
            return Effort.HIGH
        return Effort.MEDIUM

    def _instructions(self, result: CheckResult, check: Optional[Check]) -> str:
        if check is not None and check.remediation:
            return check.remediation
        if result.message:
            return f"Resolve '{result.title}': {result.message}"
        return f"Resolve '{result.title}'."
