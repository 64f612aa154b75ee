"""Shared pytest fixtures for recordguard test suites."""

from collections.abc import Generator
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def engine_env(monkeypatch: pytest.MonkeyPatch) -> Generator[pytest.MonkeyPatch, None, None]:
    """Set RECORDGUARD_* variables through the returned monkeypatch; the settings cache is reset around the test."""
    from recordguard.core.config import get_engine_settings

    get_engine_settings.cache_clear()
    yield monkeypatch
    monkeypatch.undo()
    get_engine_settings.cache_clear()
