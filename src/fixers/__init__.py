"""Automatic remediation of failed checks."""

from .base_fixer import FixResult, FixStatus, PlannedFix
from .fix_manager import RemediationManager

__all__ = [
    "FixResult",
    "FixStatus",
    "PlannedFix",
    "RemediationManager",
]
