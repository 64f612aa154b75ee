"""Engine configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_MAX_DEPTH = 32
DEFAULT_HTTP_ERROR_STATUS = 400
DEFAULT_ERROR_CODE = "validation_error"


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    return int(raw)


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings shared by every validation call."""

    max_depth: int
    http_error_status: int
    error_code: str

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if not 400 <= self.http_error_status < 500:
            raise ValueError("http_error_status must be a 4xx status code")

    def safe_for_logging(self) -> dict[str, str | int]:
        """Return engine settings as a plain dict for logs."""
        return {
            "max_depth": self.max_depth,
            "http_error_status": self.http_error_status,
            "error_code": self.error_code,
        }


@lru_cache(maxsize=1)
def get_engine_settings() -> EngineSettings:
    """Load engine settings from the environment."""
    return EngineSettings(
        max_depth=_get_int_env("RECORDGUARD_MAX_DEPTH", DEFAULT_MAX_DEPTH),
        http_error_status=_get_int_env("RECORDGUARD_HTTP_ERROR_STATUS", DEFAULT_HTTP_ERROR_STATUS),
        error_code=os.getenv("RECORDGUARD_ERROR_CODE", DEFAULT_ERROR_CODE),
    )
