"""Dependency hygiene checks."""

import re

from ..core.check import Category, Check, CheckExecutionResult, Severity
from ..core.context import RepoContext
from ..utils.files import find_first

LOCKFILE_NAMES = (
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "poetry.lock",
    "Pipfile.lock",
    "uv.lock",
)

GIT_URL_PATTERN = re.compile(r"^(git\+|git:|github:)|\.git(#.*)?$")

# A requirement pinned with == or ===, e.g. "requests==2.31.0"
PINNED_PATTERN = re.compile(r"^[A-Za-z0-9_.\-\[\],]+\s*===?\s*[^\s;]+")


def requirement_lines(text: str):
    """Yield requirement specifiers from requirements.txt content."""
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        yield line


class ManifestPresentCheck(Check):
    """A dependency manifest exists."""

    id = "repo-001"
    title = "Dependency manifest present"
    category = Category.REPO_HEALTH
    severity = Severity.HIGH
    remediation = "Declare dependencies in package.json, pyproject.toml or requirements.txt."

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        found = context.manifest is not None or context.requirements_txt is not None
        return CheckExecutionResult(
            passed=found,
            message="Dependency manifest found" if found else "No dependency manifest found",
        )


class LockfileCheck(Check):
    """Installs are reproducible from a lockfile."""

    id = "deps-001"
    title = "Lockfile present"
    category = Category.DEPENDENCIES
    severity = Severity.HIGH
    remediation = "Commit the lockfile produced by your package manager."

    def applies_to(self, context: RepoContext) -> bool:
        return context.manifest is not None

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        lockfile = find_first(context.path, LOCKFILE_NAMES)
        if lockfile:
            return CheckExecutionResult(passed=True, message="Lockfile found")
        return CheckExecutionResult(passed=False, message="No lockfile found")


class NoGitDependenciesCheck(Check):
    """Dependencies come from a registry, not from git URLs."""

    id = "deps-010"
    title = "No git URL dependencies"
    category = Category.DEPENDENCIES
    severity = Severity.MEDIUM
    remediation = "Publish the dependency to a registry or vendor it instead of installing from git."

    def applies_to(self, context: RepoContext) -> bool:
        return context.manifest is not None

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        git_deps = sorted(
            name for name, version in context.manifest.all_dependencies().items()
            if GIT_URL_PATTERN.search(str(version))
        )
        if git_deps:
            return CheckExecutionResult(
                passed=False,
                message=f"Git URL dependencies: {', '.join(git_deps)}",
            )
        return CheckExecutionResult(passed=True, message="All dependencies come from a registry")


class PinnedRequirementsCheck(Check):
    """Every requirements.txt entry is pinned to an exact version."""

    id = "deps-020"
    title = "Python requirements pinned"
    category = Category.DEPENDENCIES
    severity = Severity.MEDIUM
    remediation = "Pin each requirement with == (e.g. generate the file with pip-compile)."

    def applies_to(self, context: RepoContext) -> bool:
        return context.requirements_txt is not None

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        unpinned = [
            line for line in requirement_lines(context.requirements_txt)
            if not PINNED_PATTERN.match(line)
        ]
        if unpinned:
            preview = ", ".join(unpinned[:5])
            more = f" and {len(unpinned) - 5} more" if len(unpinned) > 5 else ""
            return CheckExecutionResult(
                passed=False,
                message=f"Unpinned requirements: {preview}{more}",
            )
        return CheckExecutionResult(passed=True, message="All requirements are pinned")


DEPENDENCY_CHECKS = [
    ManifestPresentCheck,
    LockfileCheck,
    NoGitDependenciesCheck,
    PinnedRequirementsCheck,
]
