"""Security checks."""

import os
import re

from ..core.check import Category, Check, CheckExecutionResult, Severity
from ..core.context import RepoContext, RiskLevel
from ..utils.files import grep_files, walk_files

ENV_FILE_PATTERN = re.compile(r"^\.env(\..+)?$", re.IGNORECASE)
ENV_TEMPLATE_MARKERS = ("example", "template", "sample")

SOURCE_EXTENSIONS = (
    ".ts", ".tsx", ".js", ".jsx", ".py", ".ipynb",
    ".yml", ".yaml", ".json", ".env",
)

SECRET_PATTERN = re.compile(
    "|".join([
        r"ghp_[0-9A-Za-z]{20,}",
        r"sk-[A-Za-z0-9]{20,}",
        r"AIza[0-9A-Za-z\-_]{20,}",
        r"xox[baprs]-[0-9A-Za-z-]{10,}",
        r"-----BEGIN (RSA|DSA|EC) PRIVATE KEY-----",
        r"(?i:(aws_access_key_id|aws_secret_access_key)\s*[:=]\s*['\"]?[A-Za-z0-9/+=]{16,})",
    ])
)

# Version specifiers that float: ranges, wildcards, tags
FLOATING_VERSION = re.compile(r"^\s*$|[\^~*<>x]|latest|next", re.IGNORECASE)

HIGH_RISK_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


class NoCommittedEnvFilesCheck(Check):
    """Runtime .env files are not committed."""

    id = "sec-001"
    title = "No .env files committed"
    category = Category.SECURITY
    severity = Severity.BLOCKER
    remediation = "Remove runtime .env files from the repository, add them to .gitignore and rotate exposed values."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        present = []
        for path in walk_files(context.path):
            name = os.path.basename(path)
            if not ENV_FILE_PATTERN.match(name):
                continue
            if any(marker in name.lower() for marker in ENV_TEMPLATE_MARKERS):
                continue
            present.append(os.path.relpath(path, context.path))

        if present:
            return CheckExecutionResult(
                passed=False,
                message=f"Runtime .env files committed: {', '.join(present)}",
            )
        return CheckExecutionResult(passed=True, message="No runtime .env files committed")


class NoSecretsInSourceCheck(Check):
    """Source files contain no obvious tokens or private keys."""

    id = "sec-010"
    title = "No obvious secrets or access tokens in source"
    category = Category.SECURITY
    severity = Severity.HIGH
    remediation = "Move credentials into environment variables or a secret manager and rotate the leaked ones."

    def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        offenders = grep_files(context.path, SECRET_PATTERN, SOURCE_EXTENSIONS)
        if offenders:
            return CheckExecutionResult(
                passed=False,
                message=f"Possible secrets found in: {', '.join(offenders)}",
            )
        return CheckExecutionResult(passed=True, message="No obvious secrets detected")


class HighRiskPackagesPinnedCheck(Check):
    """High and critical risk packages are pinned to exact versions."""

    id = "sec-020"
    title = "High-risk packages pinned"
    category = Category.SECURITY
    severity = Severity.HIGH
    remediation = "Pin high-risk packages (ML, payments, cloud SDKs) to exact versions and upgrade them deliberately."

    def applies_to(self, context: RepoContext) -> bool:
        return any(p.risk_level in HIGH_RISK_LEVELS for p in context.detected_packages)

    async def evaluate(self, context: RepoContext) -> CheckExecutionResult:
        declared = context.manifest.all_dependencies() if context.manifest else {}
        floating = []
        for package in context.detected_packages:
            if package.risk_level not in HIGH_RISK_LEVELS:
                continue
            version = declared.get(package.name, package.version) or ""
            if FLOATING_VERSION.search(version):
                floating.append(f"{package.name}@{version or '*'}")

        if floating:
            return CheckExecutionResult(
                passed=False,
                message=f"Unpinned high-risk packages: {', '.join(floating)}",
            )
        return CheckExecutionResult(passed=True, message="All high-risk packages are pinned")


SECURITY_CHECKS = [
    NoCommittedEnvFilesCheck,
    NoSecretsInSourceCheck,
    HighRiskPackagesPinnedCheck,
]
