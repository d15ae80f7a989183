"""Exceptions raised by the health check engine."""

from typing import List, Optional


class HealthCheckError(Exception):
    """Base class for engine errors."""


class ConflictError(HealthCheckError):
    """Raised when a check id is registered twice."""

    def __init__(self, check_id: str, message: Optional[str] = None):
        self.check_id = check_id
        self.message = message or f"Check already registered: {check_id}"
        super().__init__(self.message)


class EmptyCatalogError(HealthCheckError):
    """Raised when a scan is requested against a registry with no checks."""

    def __init__(self, message: str = "No checks registered; cannot run a scan"):
        super().__init__(message)


class MissingContextError(HealthCheckError):
    """Raised when a scan is requested without a repository context."""

    def __init__(self, message: str = "A repository context is required to run a scan"):
        super().__init__(message)


class ConfigError(HealthCheckError):
    """Raised when a configuration file fails validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))
