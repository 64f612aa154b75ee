"""Unit tests for engine settings loading."""

from __future__ import annotations

import pytest

from recordguard.core.config import DEFAULT_ERROR_CODE
from recordguard.core.config import DEFAULT_MAX_DEPTH
from recordguard.core.config import EngineSettings
from recordguard.core.config import get_engine_settings


def test_defaults_apply_without_environment(engine_env: pytest.MonkeyPatch) -> None:
    for name in ("RECORDGUARD_MAX_DEPTH", "RECORDGUARD_HTTP_ERROR_STATUS", "RECORDGUARD_ERROR_CODE"):
        engine_env.delenv(name, raising=False)

    settings = get_engine_settings()

    assert settings.max_depth == DEFAULT_MAX_DEPTH
    assert settings.http_error_status == 400
    assert settings.error_code == DEFAULT_ERROR_CODE


def test_environment_overrides_are_read(engine_env: pytest.MonkeyPatch) -> None:
    engine_env.setenv("RECORDGUARD_MAX_DEPTH", "4")
    engine_env.setenv("RECORDGUARD_HTTP_ERROR_STATUS", "422")
    engine_env.setenv("RECORDGUARD_ERROR_CODE", "invalid_record")

    settings = get_engine_settings()

    assert settings.safe_for_logging() == {
        "max_depth": 4,
        "http_error_status": 422,
        "error_code": "invalid_record",
    }


def test_settings_are_cached() -> None:
    assert get_engine_settings() is get_engine_settings()


@pytest.mark.parametrize(
    ("max_depth", "status"),
    [(0, 400), (8, 500), (8, 302)],
)
def test_settings_reject_out_of_range_values(max_depth: int, status: int) -> None:
    with pytest.raises(ValueError):
        EngineSettings(max_depth=max_depth, http_error_status=status, error_code="validation_error")
