"""Repository Health Checker."""

__version__ = "1.0.0"
