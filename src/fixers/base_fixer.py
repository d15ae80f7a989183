"""Remediation data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..core.check import Check, CheckResult


class FixStatus(Enum):
    """Status of a remediation attempt."""
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PlannedFix:
    """A failed, auto-fixable result paired with the check that can fix it."""
    result: CheckResult
    check: Check

    @property
    def check_id(self) -> str:
        return self.result.check_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "check_id": self.check_id,
            "title": self.result.title,
            "severity": self.result.severity.value,
            "message": self.result.message,
            "instructions": self.check.remediation,
        }


@dataclass(frozen=True)
class FixResult:
    """Result of running one check's automatic remediation."""
    check_id: str
    status: FixStatus
    error: Optional[str] = None
    applied_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "check_id": self.check_id,
            "status": self.status.value,
            "error": self.error,
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
        }
