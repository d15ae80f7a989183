"""Documentation checks."""

from pathlib import Path

from ..core.check import Category, Check, CheckExecutionResult, RemediableCheck, Severity
from ..core.context import RepoContext
from ..utils.files import file_exists, read_text

README_MIN_WORDS = 100

README_TEMPLATE = """# {name}

Describe what this project does, how to install it, and how to run it.

## Getting started

## Configuration

## Running tests
"""


class ReadmePresentCheck(RemediableCheck):
    """The repository root has a README.md."""

    id = "doc-001"
    title = "README.md present"
    category = Category.DOCUMENTATION
    severity = Severity.BLOCKER
    remediation = "Add a README.md at the repository root describing setup and usage."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        found = file_exists(Path(context.path) / "README.md")
        return CheckExecutionResult(
            passed=found,
            message="README.md found" if found else "README.md is missing at repository root",
            auto_fixable=not found,
        )

    def auto_fix(self, context: RepoContext) -> None:
        readme = Path(context.path) / "README.md"
        if readme.exists():
            return
        readme.write_text(README_TEMPLATE.format(name=Path(context.path).name), encoding="utf-8")


class ReadmeLengthCheck(Check):
    """The README is more than a stub."""

    id = "doc-002"
    title = f"README has at least {README_MIN_WORDS} words"
    category = Category.DOCUMENTATION
    severity = Severity.HIGH
    remediation = "Expand the README with installation, usage and configuration sections."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        readme = read_text(Path(context.path) / "README.md")
        if readme is None:
            return CheckExecutionResult(passed=False, message="README.md not found")
        words = len(readme.split())
        return CheckExecutionResult(
            passed=words >= README_MIN_WORDS,
            message=f"README contains {words} words",
        )


DOCUMENTATION_CHECKS = [
    ReadmePresentCheck,
    ReadmeLengthCheck,
]
