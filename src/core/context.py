"""Repository Context Module - Immutable snapshot consumed by checks.

The context is produced by an external introspection step. Checks share one
instance across concurrent evaluations, so every field is frozen: sequences
are tuples and mappings are read-only proxies.
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class PackageCategory(Enum):
    """Categories of detected third-party packages."""
    ML = "ml"
    TESTING = "testing"
    AUTOMATION = "automation"
    DATA = "data"
    UI = "ui"
    INFRA = "infra"
    BLOCKCHAIN = "blockchain"
    REALTIME = "realtime"
    CUSTOM = "custom"


class RiskLevel(Enum):
    """Risk level of a detected package."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _freeze_mapping(data: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class DetectedPackage:
    """A third-party package found in the repository."""
    name: str
    category: PackageCategory = PackageCategory.CUSTOM
    risk_level: RiskLevel = RiskLevel.LOW
    version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "version": self.version,
            "category": self.category.value,
            "risk_level": self.risk_level.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectedPackage":
        """Create from dictionary."""
        version = data.get("version")
        return cls(
            name=data["name"],
            version=str(version) if version is not None else None,
            category=PackageCategory(data.get("category", "custom")),
            risk_level=RiskLevel(data.get("risk_level", data.get("riskLevel", "low"))),
        )


@dataclass(frozen=True)
class ManifestData:
    """Dependency manifest (e.g. package.json) with a typed subset.

    ``dependencies`` and ``dev_dependencies`` are the documented fields.
    Anything else found in the manifest is preserved untyped in ``extra``.
    """
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "dependencies", _freeze_mapping(self.dependencies))
        object.__setattr__(self, "dev_dependencies", _freeze_mapping(self.dev_dependencies))
        object.__setattr__(self, "extra", _freeze_mapping(self.extra))

    def all_dependencies(self) -> Dict[str, str]:
        """Runtime and development dependencies merged into one mapping."""
        merged = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the manifest's native dictionary shape."""
        data = dict(self.extra)
        data["dependencies"] = dict(self.dependencies)
        data["devDependencies"] = dict(self.dev_dependencies)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ManifestData":
        """Create from a parsed manifest, keeping unknown fields in ``extra``."""
        known = {"dependencies", "devDependencies", "dev_dependencies"}

        def versions(raw: Any) -> Dict[str, str]:
            if not isinstance(raw, Mapping):
                return {}
            return {str(k): "" if v is None else str(v) for k, v in raw.items()}

        return cls(
            dependencies=versions(data.get("dependencies")),
            dev_dependencies=versions(
                data.get("devDependencies", data.get("dev_dependencies"))
            ),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True)
class RepoContext:
    """Read-only snapshot of a repository's metadata."""
    path: str
    manifest: Optional[ManifestData] = None
    requirements_txt: Optional[str] = None
    has_dockerfile: bool = False
    has_ci: bool = False
    frameworks: Tuple[str, ...] = ()
    detected_packages: Tuple[DetectedPackage, ...] = ()
    languages: Tuple[str, ...] = ()
    manifest_paths: Tuple[str, ...] = ()
    requirements_paths: Tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("frameworks", "detected_packages", "languages",
                     "manifest_paths", "requirements_paths"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def has_framework(self, name: str) -> bool:
        """Check whether a framework was detected (case-insensitive)."""
        lowered = name.lower()
        return any(f.lower() == lowered for f in self.frameworks)

    def has_package(self, name: str) -> bool:
        """Check whether a third-party package was detected."""
        return any(p.name == name for p in self.detected_packages)

    def has_language(self, name: str) -> bool:
        """Check whether a language was detected (case-insensitive)."""
        lowered = name.lower()
        return any(lang.lower() == lowered for lang in self.languages)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "path": self.path,
            "manifest": self.manifest.to_dict() if self.manifest else None,
            "requirements_txt": self.requirements_txt,
            "has_dockerfile": self.has_dockerfile,
            "has_ci": self.has_ci,
            "frameworks": list(self.frameworks),
            "detected_packages": [p.to_dict() for p in self.detected_packages],
            "languages": list(self.languages),
            "manifest_paths": list(self.manifest_paths),
            "requirements_paths": list(self.requirements_paths),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RepoContext":
        """Create from dictionary.

        Accepts snake_case keys as well as the camelCase snapshot shape
        (``packageJson``, ``hasDockerfile``, ``detectedPackages`` ...).
        """
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        manifest_raw = pick("manifest", "packageJson", "package_json")
        packages: Iterable[Mapping[str, Any]] = pick(
            "detected_packages", "detectedPackages", default=[]
        )

        return cls(
            path=str(data["path"]),
            manifest=ManifestData.from_dict(manifest_raw) if isinstance(manifest_raw, Mapping) else None,
            requirements_txt=pick("requirements_txt", "requirementsTxt"),
            has_dockerfile=bool(pick("has_dockerfile", "hasDockerfile", default=False)),
            has_ci=bool(pick("has_ci", "hasCI", default=False)),
            frameworks=tuple(pick("frameworks", default=[])),
            detected_packages=tuple(DetectedPackage.from_dict(p) for p in packages),
            languages=tuple(pick("languages", default=[])),
            manifest_paths=tuple(pick("manifest_paths", "packageJsonPaths", default=[])),
            requirements_paths=tuple(pick("requirements_paths", "requirementsPaths", default=[])),
        )

    def fingerprint(self) -> str:
        """Stable content hash of the snapshot."""
        payload = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.md5(payload.encode("utf-8")).hexdigest()
