"""Scorer Module - Calculates category and overall health scores."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from .check import Category, CheckResult, Severity


def grade_for(score: float) -> str:
    """Get letter grade for a score."""
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 70:
        return "C"
    elif score >= 60:
        return "D"
    else:
        return "F"


# Importance-weighted category mix. Enabled with the
# use_recommended_weights config setting.
RECOMMENDED_CATEGORY_WEIGHTS: Dict[Category, float] = {
    Category.CODE_QUALITY: 18,
    Category.SECURITY: 22,
    Category.DEPENDENCIES: 8,
    Category.DEVOPS: 8,
    Category.ARCHITECTURE: 8,
    Category.FRAMEWORK_SPECIFIC: 4,
    Category.TESTING: 8,
    Category.DOCUMENTATION: 4,
    Category.PERFORMANCE: 8,
    Category.AI_SPECIFIC: 3,
    Category.ACCESSIBILITY: 2,
    Category.OBSERVABILITY: 6,
    Category.DATA_QUALITY: 3,
    Category.REPO_HEALTH: 6,
}


@dataclass(frozen=True)
class ScoringPolicy:
    """Weights used to reduce check results into scores."""
    severity_weights: Mapping[Severity, float] = field(
        default_factory=lambda: {s: float(s.weight) for s in Severity}
    )
    category_weights: Optional[Mapping[Category, float]] = None  # None means equal weights
    blocker_penalty: float = 0.0

    def severity_weight(self, severity: Severity) -> float:
        return float(self.severity_weights.get(severity, severity.weight))

    def category_weight(self, category: Category) -> float:
        if self.category_weights is None:
            return 1.0
        return float(self.category_weights.get(category, 0.0))


@dataclass(frozen=True)
class Score:
    """Scores derived from one set of check results."""
    overall_score: float
    category_scores: Dict[Category, float] = field(default_factory=dict)

    @property
    def grade(self) -> str:
        """Get letter grade for overall score."""
        return grade_for(self.overall_score)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "overall_score": round(self.overall_score, 2),
            "grade": self.grade,
            "category_scores": {
                c.value: round(s, 2) for c, s in self.category_scores.items()
            },
        }


class Scorer:
    """Calculates health scores from check results.

    A category score is the severity-weighted share of passing checks in
    that category. Categories without results are left out entirely, so
    "not scored" stays distinguishable from both 0 and 100.
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None):
        """Initialize the scorer.

        Args:
            policy: Scoring weights (reference defaults if omitted)
        """
        self.policy = policy or ScoringPolicy()

    def category_scores(self, results: Sequence[CheckResult]) -> Dict[Category, float]:
        """Calculate the score of every category that has results.

        Args:
            results: Check results to score

        Returns:
            Mapping of category to score (0-100), in Category order
        """
        passed_weight: Dict[Category, float] = {}
        total_weight: Dict[Category, float] = {}

        for result in results:
            weight = self.policy.severity_weight(result.severity)
            total_weight[result.category] = total_weight.get(result.category, 0.0) + weight
            if result.passed:
                passed_weight[result.category] = passed_weight.get(result.category, 0.0) + weight

        scores: Dict[Category, float] = {}
        for category in Category:
            total = total_weight.get(category)
            if total is None:
                continue
            if total <= 0:
                # Every result carried zero weight; count passes instead.
                members = [r for r in results if r.category == category]
                scores[category] = 100.0 * sum(r.passed for r in members) / len(members)
            else:
                scores[category] = 100.0 * passed_weight.get(category, 0.0) / total
        return scores

    def overall(
        self,
        category_scores: Mapping[Category, float],
        results: Optional[Sequence[CheckResult]] = None,
    ) -> float:
        """Calculate the overall score from category scores.

        Args:
            category_scores: Scores per category
            results: Results the scores came from; needed only for the
                blocker penalty

        Returns:
            Weighted average of present categories (0 if none)
        """
        weighted_total = 0.0
        total_weight = 0.0
        for category, score in category_scores.items():
            weight = self.policy.category_weight(category)
            if weight <= 0:
                continue
            weighted_total += score * weight
            total_weight += weight

        if total_weight == 0:
            return 0.0

        overall = weighted_total / total_weight

        if self.policy.blocker_penalty and results is not None:
            if any(not r.passed and r.severity == Severity.BLOCKER for r in results):
                overall = max(0.0, overall - self.policy.blocker_penalty)

        return overall

    def score(self, results: Sequence[CheckResult]) -> Score:
        """Calculate category and overall scores in one pass.

        Args:
            results: Check results to score

        Returns:
            Score with overall and category scores
        """
        category_scores = self.category_scores(results)
        return Score(
            overall_score=self.overall(category_scores, results),
            category_scores=category_scores,
        )
