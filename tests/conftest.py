"""Shared fixtures."""

import pytest

from src.core.context import RepoContext
from src.core.registry import reset_registry


@pytest.fixture
def context(tmp_path):
    """An empty repository context rooted at a temp directory."""
    return RepoContext(path=str(tmp_path))


@pytest.fixture(autouse=True)
def isolated_registry():
    """Keep the process-wide registry empty between tests."""
    reset_registry()
    yield
    reset_registry()
