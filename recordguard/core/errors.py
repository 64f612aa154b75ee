"""Engine exceptions and API error envelope handler registration."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse

from recordguard.core.config import get_engine_settings
from recordguard.schemas.error import ErrorItem
from recordguard.schemas.error import ErrorObject
from recordguard.schemas.error import ErrorResponse

if TYPE_CHECKING:
    from recordguard.engine.errors import ValidationErrors


class RecordGuardError(Exception):
    """Base exception for everything raised by the engine."""


class SchemaDefinitionError(RecordGuardError, ValueError):
    """Raised when a schema is declared with inconsistent or unsupported options."""


class ValidationFailed(RecordGuardError):
    """Raised by the entry points when a record produced any violation."""

    def __init__(self, errors: ValidationErrors, *, message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = errors
        self.message = message

    def __str__(self) -> str:
        return f"{self.message} ({len(self.errors)} errors)\n{self.errors}"


def _build_error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: Sequence[ErrorItem] | None = None,
) -> JSONResponse:
    payload = ErrorResponse(error=ErrorObject(code=code, message=message, details=list(details) if details else None))
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


async def validation_failed_handler(_: Request, exc: ValidationFailed) -> JSONResponse:
    """Render collected violations in the shared error envelope."""

    settings = get_engine_settings()
    return _build_error_response(
        status_code=settings.http_error_status,
        code=settings.error_code,
        message="Request validation failed",
        details=exc.errors.to_wire(),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the recordguard error handlers to a FastAPI app instance."""

    app.add_exception_handler(ValidationFailed, validation_failed_handler)
