"""DevOps checks: CI, containerization and environment templates."""

from pathlib import Path

from ..core.check import Category, Check, CheckExecutionResult, RemediableCheck, Severity
from ..core.context import RepoContext
from ..utils.files import find_first, read_text

ENV_TEMPLATE_NAMES = (".env.example", ".env.sample", ".env.template")


class CIConfigCheck(Check):
    """A CI workflow is configured."""

    id = "devops-001"
    title = "CI configuration present"
    category = Category.DEVOPS
    severity = Severity.HIGH
    remediation = "Add a CI workflow (e.g. .github/workflows/ci.yml) that runs tests on every push."

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        return CheckExecutionResult(
            passed=context.has_ci,
            message="CI configuration found" if context.has_ci else "No CI configuration detected",
        )


class DockerfileCheck(Check):
    """The project ships a Dockerfile."""

    id = "devops-002"
    title = "Dockerfile present"
    category = Category.DEVOPS
    severity = Severity.MEDIUM
    remediation = "Add a Dockerfile so the service can be built reproducibly."

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        return CheckExecutionResult(
            passed=context.has_dockerfile,
            message="Dockerfile found" if context.has_dockerfile else "No Dockerfile found",
        )


class EnvTemplateCheck(RemediableCheck):
    """Environment variables used by the app are documented in a template."""

    id = "devops-010"
    title = "Environment template (.env.example) present"
    category = Category.DEVOPS
    severity = Severity.MEDIUM
    remediation = "Commit a .env.example listing every variable the application reads, without values."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        template = find_first(context.path, ENV_TEMPLATE_NAMES)
        if template:
            return CheckExecutionResult(passed=True, message=f"Found {Path(template).name}")
        return CheckExecutionResult(
            passed=False,
            message="No .env.example or similar template found",
            auto_fixable=True,
        )

    def auto_fix(self, context: RepoContext) -> None:
        target = Path(context.path) / ".env.example"
        if target.exists():
            return

        # Seed the template with variable names from a local .env, never values.
        names = []
        existing = read_text(Path(context.path) / ".env") or ""
        for line in existing.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            names.append(line.split("=", 1)[0].strip())

        lines = ["# Copy to .env and fill in the values"]
        lines.extend(f"{name}=" for name in names)
        target.write_text("\n".join(lines) + "\n", encoding="utf-8")


class BuildScriptCheck(Check):
    """The manifest declares a build script."""

    id = "devops-020"
    title = "Build script defined"
    category = Category.DEVOPS
    severity = Severity.LOW
    remediation = 'Add a "build" entry to the scripts section of the manifest.'

    def applies_to(self, context: RepoContext) -> bool:
        return context.manifest is not None

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        scripts = context.manifest.extra.get("scripts") or {}
        has_build = "build" in scripts
        return CheckExecutionResult(
            passed=has_build,
            message="Build script found" if has_build else "No build script in manifest",
        )


DEVOPS_CHECKS = [
    CIConfigCheck,
    DockerfileCheck,
    EnvTemplateCheck,
    BuildScriptCheck,
]
