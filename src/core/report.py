"""Report Module - The immutable scan report and its assembler."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .check import Category, CheckResult, Severity
from .readiness import ReadinessVerdict
from .scorer import grade_for


class Effort(Enum):
    """Estimated effort to resolve a failing check."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class QuickWin:
    """A failing check that is cheap to fix, with its payoff."""
    check: CheckResult
    effort: Effort
    points: float
    instructions: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "check": self.check.to_dict(),
            "effort": self.effort.value,
            "points": round(self.points, 2),
            "instructions": self.instructions,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuickWin":
        """Create from dictionary."""
        return cls(
            check=CheckResult.from_dict(data["check"]),
            effort=Effort(data["effort"]),
            points=float(data["points"]),
            instructions=data["instructions"],
        )


@dataclass(frozen=True)
class ScanReport:
    """Final artifact of one scan. Never mutated after construction."""
    score: float
    results: Tuple[CheckResult, ...]
    timestamp: str
    repo_path: str
    category_scores: Mapping[Category, float] = field(default_factory=dict)
    production_ready: Optional[bool] = None
    readiness_reasons: Tuple[str, ...] = ()
    quick_wins: Tuple[QuickWin, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "results", tuple(self.results))
        object.__setattr__(self, "category_scores", MappingProxyType(dict(self.category_scores)))
        object.__setattr__(self, "readiness_reasons", tuple(self.readiness_reasons))
        object.__setattr__(self, "quick_wins", tuple(self.quick_wins))

    @property
    def grade(self) -> str:
        """Get letter grade for overall score."""
        return grade_for(self.score)

    @property
    def status(self) -> str:
        """Get overall status text."""
        if self.production_ready:
            return f"Production Ready - Grade {self.grade}"
        if self.blocker_failures:
            return f"Not Ready - {self.blocker_failures} Blocking Failures"
        return "Not Ready"

    @property
    def passed_count(self) -> int:
        """Get number of passing checks."""
        return len([r for r in self.results if r.passed])

    @property
    def failed_count(self) -> int:
        """Get number of failing checks."""
        return len(self.results) - self.passed_count

    @property
    def error_count(self) -> int:
        """Get number of checks that errored or timed out."""
        return len([r for r in self.results if r.error])

    @property
    def blocker_failures(self) -> int:
        """Get number of failing blocker checks."""
        return len([
            r for r in self.results
            if not r.passed and r.severity == Severity.BLOCKER
        ])

    def get_result(self, check_id: str) -> Optional[CheckResult]:
        """Get the result of one check."""
        for result in self.results:
            if result.check_id == check_id:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": round(self.score, 2),
            "grade": self.grade,
            "status": self.status,
            "results": [r.to_dict() for r in self.results],
            "timestamp": self.timestamp,
            "repo_path": self.repo_path,
            "category_scores": {
                c.value: round(s, 2) for c, s in self.category_scores.items()
            },
            "production_ready": self.production_ready,
            "readiness_reasons": list(self.readiness_reasons),
            "quick_wins": [q.to_dict() for q in self.quick_wins],
            "summary": {
                "total_checks": len(self.results),
                "passed": self.passed_count,
                "failed": self.failed_count,
                "errors": self.error_count,
                "blocker_failures": self.blocker_failures,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScanReport":
        """Create from dictionary."""
        return cls(
            score=float(data["score"]),
            results=tuple(CheckResult.from_dict(r) for r in data.get("results", [])),
            timestamp=data["timestamp"],
            repo_path=data.get("repo_path", data.get("repoPath", "")),
            category_scores={
                Category(k): float(v)
                for k, v in (data.get("category_scores") or data.get("categoryScores") or {}).items()
            },
            production_ready=data.get("production_ready", data.get("productionReady")),
            readiness_reasons=tuple(
                data.get("readiness_reasons", data.get("readinessReasons")) or ()
            ),
            quick_wins=tuple(
                QuickWin.from_dict(q)
                for q in (data.get("quick_wins", data.get("quickWins")) or ())
            ),
        )


class ReportAssembler:
    """Packages scan outputs into a ScanReport."""

    def assemble(
        self,
        repo_path: str,
        results: Sequence[CheckResult],
        category_scores: Mapping[Category, float],
        overall_score: float,
        verdict: Optional[ReadinessVerdict] = None,
        quick_wins: Sequence[QuickWin] = (),
        timestamp: Optional[datetime] = None,
    ) -> ScanReport:
        """Build the report.

        Args:
            repo_path: Path of the scanned repository
            results: Check results in registry order
            category_scores: Scores per category
            overall_score: Overall score
            verdict: Readiness verdict, if evaluated
            quick_wins: Quick-win suggestions
            timestamp: Report time (now, UTC, if omitted)

        Returns:
            The assembled ScanReport
        """
        ts = timestamp or datetime.now(timezone.utc)
        return ScanReport(
            score=overall_score,
            results=tuple(results),
            timestamp=ts.isoformat(),
            repo_path=repo_path,
            category_scores=dict(category_scores),
            production_ready=verdict.production_ready if verdict else None,
            readiness_reasons=verdict.reasons if verdict else (),
            quick_wins=tuple(quick_wins),
        )
