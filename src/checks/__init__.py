"""Starter catalog of repository checks."""

from typing import List

from ..core.check import Check
from ..core.registry import CheckRegistry
from .dependencies import DEPENDENCY_CHECKS
from .devops import DEVOPS_CHECKS
from .documentation import DOCUMENTATION_CHECKS
from .packages import PACKAGE_CHECKS
from .security import SECURITY_CHECKS

BUILTIN_CHECKS = [
    *DOCUMENTATION_CHECKS,
    *DEVOPS_CHECKS,
    *DEPENDENCY_CHECKS,
    *SECURITY_CHECKS,
    *PACKAGE_CHECKS,
]


def builtin_checks() -> List[Check]:
    """Instantiate every check of the starter catalog."""
    return [check_class() for check_class in BUILTIN_CHECKS]


def create_default_registry() -> CheckRegistry:
    """Build a registry holding the starter catalog."""
    return CheckRegistry(builtin_checks())


__all__ = ["BUILTIN_CHECKS", "builtin_checks", "create_default_registry"]
