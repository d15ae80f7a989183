"""Core modules for the Repository Health Checker."""

from .cache import ResultCache, active_cache, fingerprint
from .check import (
    Category,
    Check,
    CheckExecutionResult,
    CheckResult,
    FrameworkCheck,
    FunctionCheck,
    PackageCheck,
    RemediableCheck,
    Severity,
)
from .context import DetectedPackage, ManifestData, PackageCategory, RepoContext, RiskLevel
from .engine import ScanEngine, ScanOptions, run_all_checks
from .exceptions import ConflictError, EmptyCatalogError, HealthCheckError, MissingContextError
from .parallel_executor import CheckExecutor, ExecutionOptions
from .readiness import ReadinessEvaluator, ReadinessPolicy, ReadinessVerdict
from .registry import CheckRegistry, filter_checks
from .report import QuickWin, ReportAssembler, ScanReport
from .scorer import Score, Scorer, ScoringPolicy

__all__ = [
    "ResultCache",
    "active_cache",
    "fingerprint",
    "Category",
    "Check",
    "CheckExecutionResult",
    "CheckResult",
    "FrameworkCheck",
    "FunctionCheck",
    "PackageCheck",
    "RemediableCheck",
    "Severity",
    "DetectedPackage",
    "ManifestData",
    "PackageCategory",
    "RepoContext",
    "RiskLevel",
    "ScanEngine",
    "ScanOptions",
    "run_all_checks",
    "ConflictError",
    "EmptyCatalogError",
    "HealthCheckError",
    "MissingContextError",
    "CheckExecutor",
    "ExecutionOptions",
    "ReadinessEvaluator",
    "ReadinessPolicy",
    "ReadinessVerdict",
    "CheckRegistry",
    "filter_checks",
    "QuickWin",
    "ReportAssembler",
    "ScanReport",
    "Score",
    "Scorer",
    "ScoringPolicy",
]
