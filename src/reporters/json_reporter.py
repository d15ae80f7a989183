"""JSON Reporter Module - Generate JSON format reports."""

import json
from typing import Any, Dict, Optional

from .base_reporter import BaseReporter
from ..core.report import ScanReport

REPORT_VERSION = "1.0.0"


class JSONReporter(BaseReporter):
    """Generate reports in JSON format."""

    def __init__(
        self,
        output_dir: Optional[str] = None,
        indent: int = 2,
        include_metadata: bool = True,
    ):
        """Initialize the JSON reporter.

        Args:
            output_dir: Directory to save reports
            indent: JSON indentation level
            include_metadata: Include a report_info block
        """
        super().__init__(output_dir)
        self.indent = indent
        self.include_metadata = include_metadata

    @property
    def format(self) -> str:
        return "json"

    @property
    def extension(self) -> str:
        return "json"

    def generate(self, report: ScanReport) -> bytes:
        """Generate JSON report.

        The payload is ``ScanReport.to_dict()``, so the file can be loaded
        back with ``ScanReport.from_dict``.
        """
        json_str = json.dumps(self._build(report), indent=self.indent, ensure_ascii=False)
        return json_str.encode("utf-8")

    def _build(self, report: ScanReport) -> Dict[str, Any]:
        data = report.to_dict()
        if self.include_metadata:
            data["report_info"] = {
                "version": REPORT_VERSION,
                "generator": "repo-health-checker",
            }
        return data
