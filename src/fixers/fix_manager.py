"""Fix Manager Module - Runs automatic remediations for a scan report."""

import inspect
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from .base_fixer import FixResult, FixStatus, PlannedFix
from ..core.check import is_remediable
from ..core.context import RepoContext
from ..core.registry import CheckRegistry
from ..core.report import ScanReport

logger = logging.getLogger(__name__)


class RemediationManager:
    """Applies the ``auto_fix`` of failed, auto-fixable checks.

    Fixes run one after another, never during a scan, because they write
    to the repository the checks read from.
    """

    def __init__(self, registry: CheckRegistry):
        """Initialize the manager.

        Args:
            registry: Catalog used to resolve result ids to checks
        """
        self.registry = registry
        self.applied_results: Dict[str, FixResult] = {}

    def plan(self, report: ScanReport) -> List[PlannedFix]:
        """List the fixes that could be applied for a report.

        Args:
            report: Scan report

        Returns:
            Planned fixes in report order
        """
        planned = []
        for result in report.results:
            if result.passed or not result.auto_fixable:
                continue
            check = self.registry.get(result.check_id)
            if check is None or not is_remediable(check):
                continue
            planned.append(PlannedFix(result=result, check=check))
        return planned

    async def apply(
        self,
        report: ScanReport,
        context: RepoContext,
        dry_run: bool = False,
    ) -> List[FixResult]:
        """Apply every planned fix.

        A fix that raises is recorded as failed and does not stop the others.

        Args:
            report: Scan report whose failures should be fixed
            context: Context of the scanned repository
            dry_run: If True, only report what would run

        Returns:
            One FixResult per auto-fixable failure in the report
        """
        planned = {item.check_id: item for item in self.plan(report)}
        results = []

        for result in report.results:
            if result.passed or not result.auto_fixable:
                continue

            item = planned.get(result.check_id)
            if item is None:
                fix_result = FixResult(
                    check_id=result.check_id,
                    status=FixStatus.SKIPPED,
                    error="No automatic remediation available",
                )
            elif dry_run:
                fix_result = FixResult(check_id=result.check_id, status=FixStatus.PENDING)
            else:
                fix_result = await self._run_fix(item, context)

            self.applied_results[result.check_id] = fix_result
            results.append(fix_result)

        return results

    async def _run_fix(self, item: PlannedFix, context: RepoContext) -> FixResult:
        try:
            outcome = item.check.auto_fix(context)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning("Remediation for %s failed: %s", item.check_id, e)
            return FixResult(
                check_id=item.check_id,
                status=FixStatus.FAILED,
                error=str(e) or type(e).__name__,
            )

        logger.info("Applied remediation for %s", item.check_id)
        return FixResult(
            check_id=item.check_id,
            status=FixStatus.APPLIED,
            applied_at=datetime.now(timezone.utc),
        )

    def get_fix_summary(self) -> Dict[str, Any]:
        """Get summary of remediation attempts.

        Returns:
            Summary dictionary
        """
        statuses = [r.status for r in self.applied_results.values()]
        return {
            "total": len(statuses),
            "applied": statuses.count(FixStatus.APPLIED),
            "failed": statuses.count(FixStatus.FAILED),
            "skipped": statuses.count(FixStatus.SKIPPED),
            "pending": statuses.count(FixStatus.PENDING),
        }

    def export_results(self, output_path: str) -> str:
        """Export remediation results to a JSON file.

        Returns:
            Path to the exported file
        """
        export_data = {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "summary": self.get_fix_summary(),
            "fixes": [r.to_dict() for r in self.applied_results.values()],
        }

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(export_data, f, indent=2)

        return str(path)
