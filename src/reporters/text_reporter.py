"""Text Reporter Module - Plain-text reports grouped by category."""

from typing import Dict, List

from .base_reporter import BaseReporter
from ..core.check import CheckResult
from ..core.report import ScanReport

RULE_WIDTH = 60


class TextReporter(BaseReporter):
    """Generate human-readable plain-text reports."""

    @property
    def format(self) -> str:
        return "text"

    @property
    def extension(self) -> str:
        return "txt"

    def generate(self, report: ScanReport) -> bytes:
        return self.render(report).encode("utf-8")

    def render(self, report: ScanReport) -> str:
        """Render the report as text."""
        lines = [
            "=" * RULE_WIDTH,
            "REPOSITORY SCAN REPORT",
            "=" * RULE_WIDTH,
            f"Repository: {report.repo_path}",
            f"Timestamp: {report.timestamp}",
            f"Overall Score: {report.score:.1f}/100 (Grade {report.grade})",
            f"Production Ready: {'YES' if report.production_ready else 'NO'}",
            "",
        ]

        if report.readiness_reasons:
            lines.append("READINESS ISSUES:")
            lines.extend(f"  - {reason}" for reason in report.readiness_reasons)
            lines.append("")

        if report.category_scores:
            lines.append("CATEGORY SCORES:")
            for category, score in report.category_scores.items():
                lines.append(f"  {category.value}: {score:.1f}/100")
            lines.append("")

        lines.append("CHECK RESULTS:")
        lines.append("-" * 40)

        for category, results in self._group_by_category(report).items():
            lines.append("")
            lines.append(f"{category.upper()}:")
            for result in results:
                mark = "PASS" if result.passed else "FAIL"
                lines.append(f"  [{mark}] [{result.severity.value.upper()}] {result.title}")
                if result.message:
                    lines.append(f"    {result.message}")
                if result.error:
                    lines.append(f"    ERROR: {result.error}")
                if result.auto_fixable:
                    lines.append("    Auto-fixable: Yes")

        if report.quick_wins:
            lines.append("")
            lines.append("QUICK WINS:")
            for win in report.quick_wins:
                lines.append(
                    f"  +{win.points:.1f} pts ({win.effort.value} effort) {win.check.title}"
                )
                lines.append(f"    {win.instructions}")

        lines.append("")
        return "\n".join(lines)

    def _group_by_category(self, report: ScanReport) -> Dict[str, List[CheckResult]]:
        groups: Dict[str, List[CheckResult]] = {}
        for result in report.results:
            groups.setdefault(result.category.value, []).append(result)
        return groups
