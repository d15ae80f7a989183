"""Base Reporter Module - Abstract base class for report writers."""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..core.report import ScanReport


class BaseReporter(ABC):
    """Abstract base class for report writers."""

    def __init__(self, output_dir: Optional[str] = None):
        """Initialize the reporter.

        Args:
            output_dir: Directory to save reports (default: current directory)
        """
        self.output_dir = Path(output_dir) if output_dir else Path.cwd()

    @property
    @abstractmethod
    def format(self) -> str:
        """Report format identifier (e.g., 'json', 'text')."""
        pass

    @property
    @abstractmethod
    def extension(self) -> str:
        """File extension for the report format."""
        pass

    @abstractmethod
    def generate(self, report: ScanReport) -> bytes:
        """Generate the report content.

        Args:
            report: Scan report to render

        Returns:
            Report content as bytes
        """
        pass

    def generate_filename(self, report: ScanReport) -> str:
        """Generate a filename for the report.

        Args:
            report: Scan report; its repository name and timestamp are used

        Returns:
            Generated filename
        """
        try:
            ts = datetime.fromisoformat(report.timestamp)
        except ValueError:
            ts = datetime.now()
        ts_str = ts.strftime("%Y%m%d_%H%M%S")
        project_name = Path(report.repo_path).name or "repository"
        safe_name = "".join(c if c.isalnum() else "_" for c in project_name)
        return f"rhc_report_{safe_name}_{ts_str}.{self.extension}"

    def save(self, report: ScanReport, filename: Optional[str] = None) -> str:
        """Generate and save the report to a file.

        Args:
            report: Scan report to render
            filename: Custom filename (default: auto-generated)

        Returns:
            Path to the saved report
        """
        content = self.generate(report)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / (filename or self.generate_filename(report))

        with open(output_path, "wb") as f:
            f.write(content)

        return str(output_path)
