"""Check Registry Module - Catalog of available checks.

Registration happens at startup; during a scan the registry is only read.
Iteration order is registration order, which keeps result lists stable
between scans of an unchanged context.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .check import Category, Check
from .context import RepoContext
from .exceptions import ConflictError

logger = logging.getLogger(__name__)


class CheckRegistry:
    """Registry of checks keyed by their unique id."""

    def __init__(self, checks: Optional[Iterable[Check]] = None):
        """Initialize the registry.

        Args:
            checks: Checks to register immediately

        Raises:
            ConflictError: If two checks share an id
        """
        self._checks: Dict[str, Check] = {}
        if checks:
            self.register_all(checks)

    def register(self, check: Check) -> Check:
        """Register a check.

        Args:
            check: Check to register

        Returns:
            The registered check, so this can be used as a decorator helper

        Raises:
            ConflictError: If a check with the same id exists
            ValueError: If the check has no id
        """
        if not check.id:
            raise ValueError(f"{type(check).__name__} has no id")
        if check.id in self._checks:
            raise ConflictError(check.id)
        self._checks[check.id] = check
        return check

    def register_all(self, checks: Iterable[Check]) -> "CheckRegistry":
        """Register several checks.

        Returns:
            Self for chaining
        """
        for check in checks:
            self.register(check)
        return self

    def applicable(self, context: RepoContext) -> List[Check]:
        """Get the checks relevant to a repository, in registration order.

        A check whose applicability predicate raises is skipped.
        """
        applicable = []
        for check in self._checks.values():
            try:
                if check.applies_to(context):
                    applicable.append(check)
            except Exception as e:
                logger.warning("Applicability test for %s failed: %s", check.id, e)
        return applicable

    def get(self, check_id: str) -> Optional[Check]:
        """Get a check by id."""
        return self._checks.get(check_id)

    def list_ids(self) -> List[str]:
        """Get registered check ids in registration order."""
        return list(self._checks.keys())

    def get_metadata(self) -> Dict[str, Any]:
        """Get registry metadata for logging and debugging."""
        by_category: Dict[str, int] = {}
        for check in self._checks.values():
            by_category[check.category.value] = by_category.get(check.category.value, 0) + 1
        return {
            "check_count": len(self._checks),
            "checks_by_category": by_category,
        }

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, check_id: object) -> bool:
        return check_id in self._checks

    def __iter__(self) -> Iterator[Check]:
        return iter(list(self._checks.values()))


def filter_checks(
    checks: Sequence[Check],
    categories: Optional[Iterable[Category]] = None,
    exclude_checks: Optional[Iterable[str]] = None,
) -> List[Check]:
    """Apply the category allow-list, then the id exclusion list.

    Both filters are pure and preserve input order. An empty or missing
    allow-list means every category is allowed.
    """
    selected = list(checks)

    allowed = {Category(c) for c in categories} if categories else set()
    if allowed:
        selected = [c for c in selected if c.category in allowed]

    excluded = set(exclude_checks or ())
    if excluded:
        selected = [c for c in selected if c.id not in excluded]

    return selected


# Global registry instance
_registry: Optional[CheckRegistry] = None


def get_registry() -> CheckRegistry:
    """Get the process-wide registry instance."""
    global _registry
    if _registry is None:
        _registry = CheckRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the process-wide registry (primarily for testing)."""
    global _registry
    _registry = None
