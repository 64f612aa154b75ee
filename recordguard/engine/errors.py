"""Violation vocabulary shared by every stage of the engine.

Field errors are built with a location relative to the record that produced
them and are re-rooted with :meth:`ValidationError.prefixed` as they travel up
through nested records and collections. Schema errors always report the root
location.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic_core import to_jsonable_python

from recordguard.schemas.error import ErrorItem

ROOT_LOCATION = "/"


class ErrorKind(str, Enum):
    """Discriminator of the two violation shapes."""

    FIELD = "field"
    SCHEMA = "schema"


def escape_segment(segment: Any) -> str:
    """Escape one location segment the way JSON pointers do."""
    return str(segment).replace("~", "~0").replace("/", "~1")


def join_location(*segments: Any) -> str:
    """Build a location from raw segments, e.g. ``("a", 2)`` -> ``/a/2``."""
    return "".join(f"/{escape_segment(segment)}" for segment in segments)


@dataclass(frozen=True)
class ValidationError:
    """One violation, either on a field (or element) or on the whole record."""

    kind: ErrorKind
    code: str
    message: str | None = None
    location: str = ""
    field: str | None = None
    params: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind is ErrorKind.SCHEMA:
            object.__setattr__(self, "location", ROOT_LOCATION)
            object.__setattr__(self, "field", None)
            object.__setattr__(self, "params", {})

    @classmethod
    def field_error(
        cls,
        code: str,
        *,
        field: str | None = None,
        message: str | None = None,
        location: str = "",
        **params: Any,
    ) -> ValidationError:
        """Create a field error; the executors fill in an empty location."""
        return cls(
            kind=ErrorKind.FIELD,
            code=code,
            message=message,
            location=location,
            field=field,
            params=dict(params),
        )

    @classmethod
    def schema_error(cls, code: str, message: str | None = None) -> ValidationError:
        """Create a record-level error."""
        return cls(kind=ErrorKind.SCHEMA, code=code, message=message)

    @property
    def is_field(self) -> bool:
        return self.kind is ErrorKind.FIELD

    @property
    def is_schema(self) -> bool:
        return self.kind is ErrorKind.SCHEMA

    def with_param(self, name: str, value: Any) -> ValidationError:
        if self.is_schema:
            return self
        return dataclasses.replace(self, params={**self.params, name: value})

    def with_message(self, message: str | None) -> ValidationError:
        return dataclasses.replace(self, message=message)

    def with_code(self, code: str) -> ValidationError:
        return dataclasses.replace(self, code=code)

    def located(self, location: str, field: str | None = None) -> ValidationError:
        """Set the location (and field name) unless the error already carries one."""
        if self.is_schema or self.location:
            return self
        return dataclasses.replace(self, location=location, field=self.field or field)

    def prefixed(self, *segments: Any) -> ValidationError:
        """Re-root a field error under the given parent segments."""
        if self.is_schema or not segments:
            return self
        return dataclasses.replace(self, location=join_location(*segments) + self.location)

    def to_wire(self) -> ErrorItem:
        return ErrorItem(
            kind=self.kind.value,
            location=self.location or ROOT_LOCATION,
            code=self.code,
            message=self.message,
            field=self.field,
            params=to_jsonable_python(dict(self.params), fallback=str),
        )

    def __str__(self) -> str:
        message = self.message or ""
        if self.is_schema:
            return f"Schema validation error: {{ code: {self.code}, message: {message}, location: {self.location} }}"
        return (
            f"Validation error: {{ code: {self.code}, location: {self.location}, "
            f"field: {self.field}, message: {message}, params: {dict(self.params)} }}"
        )


class ValidationErrors:
    """Ordered collection of violations.

    Merging concatenates in source order and never deduplicates, so
    ``a.merge(b).merge(c)`` and ``a + (b + c)`` hold the same sequence.
    """

    __slots__ = ("_errors",)

    def __init__(self, errors: Iterable[ValidationError] = ()) -> None:
        self._errors: list[ValidationError] = list(errors)

    def add(self, error: ValidationError) -> None:
        self._errors.append(error)

    def merge(self, other: Iterable[ValidationError]) -> ValidationErrors:
        """Append ``other`` in place and return self for chaining."""
        self._errors.extend(other)
        return self

    def __add__(self, other: ValidationErrors) -> ValidationErrors:
        if not isinstance(other, ValidationErrors):
            return NotImplemented
        return ValidationErrors([*self._errors, *other._errors])

    @property
    def errors(self) -> tuple[ValidationError, ...]:
        return tuple(self._errors)

    def field_errors(self) -> list[ValidationError]:
        return [error for error in self._errors if error.is_field]

    def schema_errors(self) -> list[ValidationError]:
        return [error for error in self._errors if error.is_schema]

    def prefixed(self, *segments: Any) -> ValidationErrors:
        return ValidationErrors(error.prefixed(*segments) for error in self._errors)

    def to_wire(self) -> list[ErrorItem]:
        return [error.to_wire() for error in self._errors]

    def __iter__(self) -> Iterator[ValidationError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __getitem__(self, index: int) -> ValidationError:
        return self._errors[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationErrors):
            return NotImplemented
        return self._errors == other._errors

    def __repr__(self) -> str:
        return f"ValidationErrors({self._errors!r})"

    def __str__(self) -> str:
        return "\n".join(str(error) for error in self._errors)
