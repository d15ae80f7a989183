"""Configuration Module - Loads scanner settings from YAML and the environment."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .cache import DEFAULT_TTL_SECONDS
from .check import Category, Severity
from .engine import ScanOptions
from .exceptions import ConfigError
from .parallel_executor import DEFAULT_CHECK_TIMEOUT, DEFAULT_MAX_CONCURRENCY
from .quick_wins import DEFAULT_QUICK_WIN_LIMIT
from .readiness import (
    DEFAULT_HIGH_CATEGORY_THRESHOLD,
    DEFAULT_OVERALL_THRESHOLD,
    STRICT_CATEGORY_THRESHOLDS,
    ReadinessPolicy,
)
from .scorer import RECOMMENDED_CATEGORY_WEIGHTS, ScoringPolicy

logger = logging.getLogger(__name__)

MAX_CONCURRENCY_LIMIT = 50

# Environment variable -> (config field, parser)
ENV_OVERRIDES = {
    "RHC_PARALLEL": ("parallel", "bool"),
    "RHC_MAX_CONCURRENCY": ("max_concurrency", "int"),
    "RHC_ENABLE_CACHE": ("enable_cache", "bool"),
    "RHC_CACHE_TTL": ("cache_ttl", "float"),
    "RHC_CHECK_TIMEOUT": ("check_timeout", "float"),
    "RHC_OVERALL_THRESHOLD": ("overall_threshold", "float"),
}


@dataclass
class ScannerConfig:
    """Scanner settings. Category and severity names are kept as strings."""
    # Performance settings
    parallel: bool = True
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    enable_cache: bool = True
    cache_ttl: float = DEFAULT_TTL_SECONDS
    check_timeout: float = DEFAULT_CHECK_TIMEOUT

    # Filtering options
    enabled_categories: List[str] = field(default_factory=list)
    disabled_checks: List[str] = field(default_factory=list)
    min_severity: str = "low"

    # Scoring policy
    severity_weights: Dict[str, float] = field(
        default_factory=lambda: {s.value: float(s.weight) for s in Severity}
    )
    category_weights: Dict[str, float] = field(default_factory=dict)
    use_recommended_weights: bool = False
    blocker_penalty: float = 0.0

    # Readiness policy
    overall_threshold: float = DEFAULT_OVERALL_THRESHOLD
    high_category_threshold: float = DEFAULT_HIGH_CATEGORY_THRESHOLD
    category_thresholds: Dict[str, float] = field(default_factory=dict)
    strict_thresholds: bool = False

    # Reporting options
    include_quick_wins: bool = True
    quick_win_limit: int = DEFAULT_QUICK_WIN_LIMIT
    verbose: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScannerConfig":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
        config = cls(**{k: v for k, v in data.items() if k in known})
        # Merge weight tables over the defaults instead of replacing them.
        if "severity_weights" in data:
            merged = cls().severity_weights
            merged.update(data["severity_weights"] or {})
            config.severity_weights = merged
        return config

    def to_scan_options(self) -> ScanOptions:
        """Build scan options from this config."""
        return ScanOptions(
            parallel=self.parallel,
            max_concurrency=self.max_concurrency,
            enable_cache=self.enable_cache,
            timeout=self.check_timeout,
            categories=[Category(c) for c in self.enabled_categories] or None,
            exclude_checks=list(self.disabled_checks) or None,
            min_severity=Severity(self.min_severity),
            include_quick_wins=self.include_quick_wins,
            quick_win_limit=self.quick_win_limit,
        )

    def to_scoring_policy(self) -> ScoringPolicy:
        """Build the scoring policy from this config.

        Explicit ``category_weights`` override the recommended mix.
        """
        category_weights = None
        if self.use_recommended_weights:
            category_weights = dict(RECOMMENDED_CATEGORY_WEIGHTS)
        if self.category_weights:
            category_weights = category_weights or {}
            category_weights.update(
                {Category(k): float(v) for k, v in self.category_weights.items()}
            )
        return ScoringPolicy(
            severity_weights={Severity(k): float(v) for k, v in self.severity_weights.items()},
            category_weights=category_weights,
            blocker_penalty=self.blocker_penalty,
        )

    def to_readiness_policy(self) -> ReadinessPolicy:
        """Build the readiness policy from this config."""
        thresholds = dict(STRICT_CATEGORY_THRESHOLDS) if self.strict_thresholds else {}
        thresholds.update({Category(k): float(v) for k, v in self.category_thresholds.items()})
        return ReadinessPolicy(
            overall_threshold=self.overall_threshold,
            high_category_threshold=self.high_category_threshold,
            category_thresholds=thresholds,
        )


def _parse_env_value(raw: str, kind: str) -> Any:
    if kind == "bool":
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if kind == "int":
        return int(raw)
    return float(raw)


def load_config(config_path: Optional[str] = None, use_env: bool = True) -> ScannerConfig:
    """Load configuration.

    Defaults are merged with the YAML (or JSON) file, then with ``RHC_*``
    environment variables (a ``.env`` file is loaded first if present).

    Args:
        config_path: Path to a config file
        use_env: Whether to apply environment overrides

    Returns:
        The loaded configuration (not validated)
    """
    data: Dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
        else:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix == ".json":
                    loaded = json.load(f)
                else:
                    loaded = yaml.safe_load(f)
            data.update(loaded or {})

    config = ScannerConfig.from_dict(data)

    if use_env:
        load_dotenv()
        for env_name, (attr, kind) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                setattr(config, attr, _parse_env_value(raw, kind))
            except ValueError:
                logger.warning("Ignoring invalid value for %s: %r", env_name, raw)

    return config


def validate_config(config: ScannerConfig) -> List[str]:
    """Validate a configuration.

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []
    category_names = {c.value for c in Category}
    severity_names = {s.value for s in Severity}

    if config.max_concurrency < 1 or config.max_concurrency > MAX_CONCURRENCY_LIMIT:
        errors.append(f"max_concurrency must be between 1 and {MAX_CONCURRENCY_LIMIT}")

    if config.cache_ttl < 0:
        errors.append("cache_ttl must be non-negative")

    if config.check_timeout <= 0:
        errors.append("check_timeout must be positive")

    if config.min_severity not in severity_names:
        errors.append(f"Unknown min_severity: {config.min_severity}")

    for name in config.enabled_categories:
        if name not in category_names:
            errors.append(f"Unknown category in enabled_categories: {name}")

    for name, weight in config.severity_weights.items():
        if name not in severity_names:
            errors.append(f"Unknown severity in severity_weights: {name}")
        elif weight < 0:
            errors.append(f"Severity weight for {name} must be non-negative")

    for name, weight in config.category_weights.items():
        if name not in category_names:
            errors.append(f"Unknown category in category_weights: {name}")
        elif weight < 0:
            errors.append(f"Category weight for {name} must be non-negative")

    for label, value in (
        ("overall_threshold", config.overall_threshold),
        ("high_category_threshold", config.high_category_threshold),
    ):
        if value < 0 or value > 100:
            errors.append(f"{label} must be between 0 and 100")

    for name, value in config.category_thresholds.items():
        if name not in category_names:
            errors.append(f"Unknown category in category_thresholds: {name}")
        elif value < 0 or value > 100:
            errors.append(f"Threshold for {name} must be between 0 and 100")

    if config.blocker_penalty < 0:
        errors.append("blocker_penalty must be non-negative")

    if config.quick_win_limit < 0:
        errors.append("quick_win_limit must be non-negative")

    return errors


def save_config(config: ScannerConfig, config_path: str) -> str:
    """Write a configuration to a YAML file.

    Returns:
        Path to the saved file
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
    return str(path)


def ensure_valid_config(config: ScannerConfig) -> ScannerConfig:
    """Validate a configuration and return it unchanged.

    Raises:
        ConfigError: If any setting is invalid
    """
    errors = validate_config(config)
    if errors:
        raise ConfigError(errors)
    return config
