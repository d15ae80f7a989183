"""Base Check Module - Defines base classes and data models for checks."""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from .context import RepoContext


class Severity(Enum):
    """Severity levels for checks."""
    BLOCKER = "blocker"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        """Get default scoring weight for severity."""
        weights = {
            Severity.BLOCKER: 4,
            Severity.HIGH: 3,
            Severity.MEDIUM: 2,
            Severity.LOW: 1,
        }
        return weights[self]

    @property
    def rank(self) -> int:
        """Ordering rank, higher is more severe."""
        return self.weight

    @property
    def color(self) -> str:
        """Get color name for severity."""
        colors = {
            Severity.BLOCKER: "red",
            Severity.HIGH: "orange1",
            Severity.MEDIUM: "yellow",
            Severity.LOW: "blue",
        }
        return colors[self]


class Category(Enum):
    """Quality dimensions used to group checks for sub-scores."""
    CODE_QUALITY = "codeQuality"
    SECURITY = "security"
    DEPENDENCIES = "dependencies"
    DEVOPS = "devops"
    ARCHITECTURE = "architecture"
    FRAMEWORK_SPECIFIC = "frameworkSpecific"
    TESTING = "testing"
    DOCUMENTATION = "documentation"
    PERFORMANCE = "performance"
    AI_SPECIFIC = "aiSpecific"
    ACCESSIBILITY = "accessibility"
    OBSERVABILITY = "observability"
    DATA_QUALITY = "dataQuality"
    REPO_HEALTH = "repoHealth"


@dataclass(frozen=True)
class CheckExecutionResult:
    """Outcome returned by a check's evaluation."""
    passed: bool
    message: Optional[str] = None
    error: Optional[str] = None
    auto_fixable: Optional[bool] = None

    @classmethod
    def coerce(cls, value: Any) -> "CheckExecutionResult":
        """Normalize what a check returned.

        Raises:
            TypeError: If the value cannot be interpreted as an outcome
        """
        if isinstance(value, CheckExecutionResult):
            return value
        if isinstance(value, Mapping):
            return cls(
                passed=bool(value["passed"]),
                message=value.get("message"),
                error=value.get("error"),
                auto_fixable=value.get("auto_fixable", value.get("autoFixable")),
            )
        if isinstance(value, bool):
            return cls(passed=value)
        raise TypeError(
            f"Check returned {type(value).__name__}, expected CheckExecutionResult"
        )


@dataclass(frozen=True)
class CheckResult:
    """Result of running one check against a repository context."""
    check_id: str
    title: str
    category: Category
    severity: Severity
    passed: bool
    message: Optional[str] = None
    error: Optional[str] = None
    auto_fixable: Optional[bool] = None
    duration_ms: int = 0

    @classmethod
    def from_check(
        cls,
        check: "Check",
        outcome: CheckExecutionResult,
        duration_ms: int = 0,
    ) -> "CheckResult":
        """Merge a check's static metadata with its execution outcome."""
        return cls(
            check_id=check.id,
            title=check.title,
            category=check.category,
            severity=check.severity,
            passed=outcome.passed,
            message=outcome.message,
            error=outcome.error,
            auto_fixable=outcome.auto_fixable,
            duration_ms=duration_ms,
        )

    @classmethod
    def from_failure(
        cls,
        check: "Check",
        error: Union[BaseException, str],
        duration_ms: int = 0,
    ) -> "CheckResult":
        """Synthesize a failed result for a check that raised or timed out."""
        if isinstance(error, BaseException):
            error_text = str(error) or type(error).__name__
        else:
            error_text = error or "Unknown error while running check"
        return cls(
            check_id=check.id,
            title=check.title,
            category=check.category,
            severity=check.severity,
            passed=False,
            message=None,
            error=error_text,
            auto_fixable=None,
            duration_ms=duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "check_id": self.check_id,
            "title": self.title,
            "category": self.category.value,
            "severity": self.severity.value,
            "passed": self.passed,
            "message": self.message,
            "error": self.error,
            "auto_fixable": self.auto_fixable,
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CheckResult":
        """Create from dictionary."""
        return cls(
            check_id=data.get("check_id", data.get("checkId")),
            title=data["title"],
            category=Category(data["category"]),
            severity=Severity(data["severity"]),
            passed=bool(data["passed"]),
            message=data.get("message"),
            error=data.get("error"),
            auto_fixable=data.get("auto_fixable", data.get("autoFixable")),
            duration_ms=data.get("duration_ms", 0),
        )


class Check(ABC):
    """Abstract base class for all checks.

    Subclasses declare their metadata as class attributes and implement
    ``evaluate``. A plain ``def evaluate`` is treated as blocking and run on a
    worker thread; an ``async def evaluate`` runs on the event loop.

    Checks must treat the context as read-only.
    """

    id: str = ""
    title: str = ""
    category: Category = Category.CODE_QUALITY
    severity: Severity = Severity.MEDIUM
    automated: bool = True
    remediation: Optional[str] = None

    @abstractmethod
    def evaluate(self, context: RepoContext) -> Any:
        """Evaluate the check.

        Args:
            context: Repository snapshot

        Returns:
            CheckExecutionResult (or an awaitable of one)
        """
        pass

    def applies_to(self, context: RepoContext) -> bool:
        """Whether this check is relevant for the given repository."""
        return True

    @property
    def is_async(self) -> bool:
        """Whether ``evaluate`` must be awaited on the event loop."""
        return inspect.iscoroutinefunction(self.evaluate)

    def get_metadata(self) -> Dict[str, Any]:
        """Get check metadata for listings and debugging."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "severity": self.severity.value,
            "automated": self.automated,
            "remediable": is_remediable(self),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class RemediableCheck(Check):
    """A check that can also repair what it detects."""

    @abstractmethod
    def auto_fix(self, context: RepoContext) -> Any:
        """Apply the automatic remediation.

        Only ever invoked by a remediation orchestrator, never during a scan.
        May be a coroutine function.
        """
        pass


def is_remediable(check: Check) -> bool:
    """Whether a check offers an automatic remediation."""
    return callable(getattr(check, "auto_fix", None))


CheckFunction = Callable[[RepoContext], Union[CheckExecutionResult, Awaitable[CheckExecutionResult]]]


class FunctionCheck(Check):
    """Adapts a plain or coroutine function into a Check."""

    def __init__(
        self,
        check_id: str,
        title: str,
        category: Category,
        severity: Severity,
        checker: CheckFunction,
        applies: Optional[Callable[[RepoContext], bool]] = None,
        fixer: Optional[Callable[[RepoContext], Any]] = None,
        automated: bool = True,
        remediation: Optional[str] = None,
    ):
        """Initialize the check.

        Args:
            check_id: Unique identifier
            title: Human-readable title
            category: Category the check scores into
            severity: Severity of a failure
            checker: Function evaluating the context
            applies: Optional applicability predicate
            fixer: Optional remediation function
            automated: Whether the check is fully automated
            remediation: Remediation instructions
        """
        self.id = check_id
        self.title = title
        self.category = category
        self.severity = severity
        self.automated = automated
        self.remediation = remediation
        self._checker = checker
        self._applies = applies
        if fixer is not None:
            self.auto_fix = fixer

    def evaluate(self, context: RepoContext) -> Any:
        return self._checker(context)

    def applies_to(self, context: RepoContext) -> bool:
        if self._applies is None:
            return True
        return bool(self._applies(context))

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self._checker)


class FrameworkCheck(Check):
    """A check that only applies when its framework was detected."""

    framework: str = ""

    def applies_to(self, context: RepoContext) -> bool:
        return context.has_framework(self.framework)


class PackageCheck(Check):
    """A check that only applies when its package was detected."""

    package: str = ""

    def applies_to(self, context: RepoContext) -> bool:
        return context.has_package(self.package)
