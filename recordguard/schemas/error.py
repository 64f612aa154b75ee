"""Error wire schemas rendered to API clients."""

from __future__ import annotations

from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

ErrorKind = Literal["field", "schema"]


class ErrorItem(BaseModel):
    """Single field-level or record-level violation."""

    kind: ErrorKind
    location: str
    code: str
    message: str | None = None
    field: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)


class ErrorObject(BaseModel):
    """Canonical error payload object."""

    code: str
    message: str
    details: list[ErrorItem] | None = None


class ErrorResponse(BaseModel):
    """Top-level API error response envelope."""

    error: ErrorObject
