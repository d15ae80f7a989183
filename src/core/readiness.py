"""Readiness Module - Production-readiness verdict from scores and results."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from .check import Category, CheckResult, Severity
from .scorer import Scorer

if TYPE_CHECKING:
    from .report import ScanReport

DEFAULT_OVERALL_THRESHOLD = 80.0
DEFAULT_HIGH_CATEGORY_THRESHOLD = 80.0

# Per-category minimums enabled by the strict_thresholds config setting.
STRICT_CATEGORY_THRESHOLDS: Dict[Category, float] = {
    Category.SECURITY: 85.0,
    Category.DEVOPS: 80.0,
    Category.TESTING: 75.0,
    Category.CODE_QUALITY: 70.0,
}


@dataclass(frozen=True)
class ReadinessPolicy:
    """Thresholds a scan must clear to be production ready."""
    overall_threshold: float = DEFAULT_OVERALL_THRESHOLD
    high_category_threshold: float = DEFAULT_HIGH_CATEGORY_THRESHOLD
    category_thresholds: Mapping[Category, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ReadinessVerdict:
    """Outcome of a readiness evaluation."""
    production_ready: bool
    reasons: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "production_ready": self.production_ready,
            "reasons": list(self.reasons),
        }


class ReadinessEvaluator:
    """Applies a readiness policy to check results and scores.

    The evaluator only looks at results and scores, so it can be re-run
    against stored reports when thresholds change.
    """

    def __init__(self, policy: Optional[ReadinessPolicy] = None):
        """Initialize the evaluator.

        Args:
            policy: Readiness thresholds (reference defaults if omitted)
        """
        self.policy = policy or ReadinessPolicy()

    def evaluate(
        self,
        results: Sequence[CheckResult],
        category_scores: Mapping[Category, float],
        overall_score: float,
    ) -> ReadinessVerdict:
        """Decide whether a scan is production ready.

        Args:
            results: Check results of the scan
            category_scores: Scores per category
            overall_score: Overall score

        Returns:
            ReadinessVerdict with one reason per unmet condition
        """
        reasons: List[str] = []

        for result in results:
            if not result.passed and result.severity == Severity.BLOCKER:
                reasons.append(
                    f"Blocker check failed: [{result.category.value}] "
                    f"{result.title} ({result.check_id})"
                )

        flagged: List[Category] = []
        for result in results:
            if result.passed or result.severity != Severity.HIGH:
                continue
            if result.category in flagged:
                continue
            score = category_scores.get(result.category)
            if score is not None and score < self.policy.high_category_threshold:
                flagged.append(result.category)
                reasons.append(
                    f"High-severity check failed in {result.category.value} "
                    f"(category score {score:.1f} below "
                    f"{self.policy.high_category_threshold:g})"
                )

        for category, minimum in self.policy.category_thresholds.items():
            score = category_scores.get(category)
            if score is not None and score < minimum:
                reasons.append(
                    f"{category.value} score below {minimum:g} (got {score:.1f})"
                )

        if overall_score < self.policy.overall_threshold:
            reasons.append(
                f"Overall score below {self.policy.overall_threshold:g} "
                f"(got {overall_score:.1f})"
            )

        return ReadinessVerdict(production_ready=not reasons, reasons=tuple(reasons))

    def reevaluate(
        self,
        report: "ScanReport",
        scorer: Optional[Scorer] = None,
    ) -> "ScanReport":
        """Apply this policy to a previously produced report.

        Scores are recomputed from the stored results with ``scorer`` (when
        given) or taken from the report; no check is run again.

        Returns:
            A new report with updated scores and verdict
        """
        if scorer is not None:
            score = scorer.score(report.results)
            category_scores = score.category_scores
            overall = score.overall_score
        else:
            category_scores = dict(report.category_scores)
            overall = report.score

        verdict = self.evaluate(report.results, category_scores, overall)
        return replace(
            report,
            score=overall,
            category_scores=category_scores,
            production_ready=verdict.production_ready,
            readiness_reasons=verdict.reasons,
        )
