"""Check doubles and result builders for tests."""

from src.core.check import Category, CheckExecutionResult, CheckResult, FunctionCheck, Severity


def make_result(
    check_id: str = "chk-1",
    category: Category = Category.SECURITY,
    severity: Severity = Severity.MEDIUM,
    passed: bool = True,
    auto_fixable=None,
    title=None,
) -> CheckResult:
    """Build a CheckResult without running a check."""
    return CheckResult(
        check_id=check_id,
        title=title or f"Check {check_id}",
        category=category,
        severity=severity,
        passed=passed,
        auto_fixable=auto_fixable,
    )


def static_check(
    check_id: str,
    category: Category = Category.SECURITY,
    severity: Severity = Severity.MEDIUM,
    passed: bool = True,
    **kwargs,
) -> FunctionCheck:
    """A coroutine check that always returns the same outcome."""
    async def checker(context):
        return CheckExecutionResult(passed=passed, message="passed" if passed else "failed")

    return FunctionCheck(check_id, f"Check {check_id}", category, severity, checker, **kwargs)


def raising_check(check_id: str, error: Exception, **kwargs) -> FunctionCheck:
    """A blocking check that always raises ``error``."""
    def checker(context):
        raise error

    return FunctionCheck(
        check_id, f"Check {check_id}", Category.CODE_QUALITY, Severity.HIGH, checker, **kwargs
    )

