"""Shared pytest fixtures for error response test suites."""

from collections.abc import Generator
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from error_response.core.config import get_derivation_settings  # noqa: E402
from error_response.custom_fn import CustomFunctionRegistry  # noqa: E402
from error_response.custom_fn import default_registry  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Re-read derivation settings from the environment for every test."""
    get_derivation_settings.cache_clear()
    yield
    get_derivation_settings.cache_clear()


@pytest.fixture
def registry() -> CustomFunctionRegistry:
    """Provide an isolated custom-function registry."""
    return CustomFunctionRegistry()


@pytest.fixture
def registered_custom_fns() -> Generator[list[str], None, None]:
    """Track names registered on the default registry and drop them afterwards."""
    names: list[str] = []
    yield names
    for name in names:
        default_registry.unregister(name)
