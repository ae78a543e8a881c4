"""Root conftest: shared test configuration."""

import os

import pytest

# Ensure tests never pick up a developer's local overrides
os.environ.setdefault("FAGE_LOG_LEVEL", "DEBUG")
os.environ.setdefault("FAGE_LOG_FORMAT", "json")
os.environ.setdefault("FAGE_ROOT_SCOPE", "root")

from fage.config import get_settings  # noqa: E402
from fage.core.scopes import ScopeRegistry  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached Settings so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def registry():
    return ScopeRegistry()
