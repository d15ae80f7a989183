"""Checks that only apply when a specific package was detected."""

import re

from ..core.check import Category, CheckExecutionResult, PackageCheck, Severity
from ..core.context import RepoContext
from ..utils.files import grep_files

SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py")

OPENAI_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9]{20,}")
HARD_WAIT_PATTERN = re.compile(r"\.(waitForTimeout|wait_for_timeout)\s*\(")


class OpenAIKeyExposureCheck(PackageCheck):
    """OpenAI-style API keys are not hard-coded."""

    id = "ai-001"
    title = "OpenAI-style API keys not exposed in source"
    category = Category.SECURITY
    severity = Severity.BLOCKER
    package = "openai"
    remediation = "Read the API key from OPENAI_API_KEY at runtime and revoke any key that was committed."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        found = grep_files(context.path, OPENAI_KEY_PATTERN, SCRIPT_EXTENSIONS)
        if found:
            return CheckExecutionResult(
                passed=False,
                message=f"Possible OpenAI-style keys found in: {', '.join(found)}",
            )
        return CheckExecutionResult(passed=True, message="No OpenAI-style API keys detected in source")


class PlaywrightHardWaitCheck(PackageCheck):
    """Playwright tests wait on conditions, not fixed delays."""

    id = "pw-001"
    title = "Avoid hard-coded waits in Playwright tests"
    category = Category.TESTING
    severity = Severity.MEDIUM
    package = "playwright"
    remediation = "Replace waitForTimeout with locator assertions or waitFor* conditions."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        offenders = grep_files(context.path, HARD_WAIT_PATTERN, SCRIPT_EXTENSIONS)
        if offenders:
            return CheckExecutionResult(
                passed=False,
                message=f"Hard-coded waits found in: {', '.join(offenders)}",
            )
        return CheckExecutionResult(passed=True, message="No hard-coded Playwright waits detected")


PACKAGE_CHECKS = [
    OpenAIKeyExposureCheck,
    PlaywrightHardWaitCheck,
]
