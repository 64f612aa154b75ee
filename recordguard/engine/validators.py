"""Validator specs and the validator executor.

The executor never short-circuits: every validator of every field runs and
each violation is collected, so a caller sees all of them in one round trip.
Record-level validators run once all fields have been checked.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Collection
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
import re
from typing import Any
from typing import ClassVar
from typing import TYPE_CHECKING

from recordguard.core.errors import SchemaDefinitionError
from recordguard.engine import predicates
from recordguard.engine import temporal
from recordguard.engine.errors import ValidationError
from recordguard.engine.errors import ValidationErrors
from recordguard.engine.errors import join_location
from recordguard.engine.records import Traversal
from recordguard.engine.records import get_value
from recordguard.engine.records import iter_elements
from recordguard.engine.temporal import Clock
from recordguard.engine.temporal import Interval
from recordguard.engine.temporal import TimeOp
from recordguard.engine.temporal import TimeTarget

if TYPE_CHECKING:
    from recordguard.engine.schema import FieldDescriptor
    from recordguard.engine.schema import RecordSchema
    from recordguard.engine.schema import UnionSchema

SchemaValidator = Callable[[Any], Any]


class ValidatorKind(str, Enum):
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    CREDIT_CARD = "credit_card"
    NON_CONTROL_CHAR = "non_control_char"
    IP = "ip"
    REGEX = "regex"
    LENGTH = "length"
    RANGE = "range"
    CONTAINS = "contains"
    CONTAINS_NOT = "contains_not"
    IS_IN = "in"
    NOT_IN = "not_in"
    REQUIRED = "required"
    MUST_MATCH = "must_match"
    CUSTOM = "custom"
    TIME = "time"
    ITER = "iter"
    NESTED = "nested"


@dataclass(frozen=True, kw_only=True)
class ValidatorSpec:
    """Base of every declared validator; ``code`` and ``message`` override the defaults."""

    kind: ClassVar[ValidatorKind]

    code: str | None = None
    message: str | None = None

    @property
    def default_code(self) -> str:
        return self.kind.value

    @property
    def error_code(self) -> str:
        return self.code or self.default_code

    def error(self, **params: Any) -> ValidationError:
        return ValidationError.field_error(self.error_code, message=self.message, **params)


@dataclass(frozen=True)
class Email(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.EMAIL


@dataclass(frozen=True)
class Url(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.URL


@dataclass(frozen=True)
class Phone(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.PHONE


@dataclass(frozen=True)
class CreditCard(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.CREDIT_CARD


@dataclass(frozen=True)
class NonControlChar(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.NON_CONTROL_CHAR


@dataclass(frozen=True)
class Ip(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.IP

    version: int | None = None

    def __post_init__(self) -> None:
        if self.version not in (None, 4, 6):
            raise SchemaDefinitionError("ip version must be 4, 6 or None")


@dataclass(frozen=True)
class Regex(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.REGEX

    pattern: str | re.Pattern[str]

    def __post_init__(self) -> None:
        if isinstance(self.pattern, str):
            try:
                compiled = re.compile(self.pattern)
            except re.error as exc:
                raise SchemaDefinitionError(f"invalid regex {self.pattern!r}: {exc}") from exc
            object.__setattr__(self, "pattern", compiled)


@dataclass(frozen=True)
class Length(ValidatorSpec):
    """Length bounds; ``equal`` cannot be combined with ``min``/``max``."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.LENGTH

    min: int | None = None
    max: int | None = None
    equal: int | None = None

    def __post_init__(self) -> None:
        if self.min is None and self.max is None and self.equal is None:
            raise SchemaDefinitionError("length requires min, max or equal")
        if self.equal is not None and (self.min is not None or self.max is not None):
            raise SchemaDefinitionError("length equal cannot be combined with min or max")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise SchemaDefinitionError("length min must not exceed max")


@dataclass(frozen=True)
class Range(ValidatorSpec):
    """Inclusive numeric bounds."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.RANGE

    min: float | None = None
    max: float | None = None

    def __post_init__(self) -> None:
        if self.min is None and self.max is None:
            raise SchemaDefinitionError("range requires min or max")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise SchemaDefinitionError("range min must not exceed max")


@dataclass(frozen=True)
class Contains(ValidatorSpec):
    """Substring for strings, key presence for mappings, membership otherwise."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.CONTAINS

    needle: Any


@dataclass(frozen=True)
class ContainsNot(Contains):
    kind: ClassVar[ValidatorKind] = ValidatorKind.CONTAINS_NOT


@dataclass(frozen=True)
class IsIn(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.IS_IN

    collection: Collection[Any]


@dataclass(frozen=True)
class NotIn(IsIn):
    kind: ClassVar[ValidatorKind] = ValidatorKind.NOT_IN


@dataclass(frozen=True)
class Required(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.REQUIRED


@dataclass(frozen=True)
class MustMatch(ValidatorSpec):
    """Equality with another field of the same record, named by its internal name."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.MUST_MATCH

    other: str


@dataclass(frozen=True)
class Custom(ValidatorSpec):
    """Call ``function(value)``; it returns ``None``, an error or an iterable of errors."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.CUSTOM

    function: Callable[[Any], Any]


@dataclass(frozen=True)
class Time(ValidatorSpec):
    kind: ClassVar[ValidatorKind] = ValidatorKind.TIME

    op: TimeOp
    target: TimeTarget | None = None
    format: str | None = None
    interval: Interval | timedelta | None = None
    inclusive: bool | None = None
    time: bool = False
    clock: Clock | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "op", TimeOp(self.op))
        temporal.check_options(self.op, target=self.target, format=self.format, interval=self.interval)

    @property
    def default_code(self) -> str:
        inclusive = self.inclusive if self.inclusive is not None else temporal.default_inclusive(self.op)
        if inclusive and self.op in (TimeOp.BEFORE, TimeOp.AFTER):
            return f"{self.op.value}_or_equal"
        return self.op.value


@dataclass(frozen=True)
class Iter(ValidatorSpec):
    """Apply ``validators`` to every element of a collection."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.ITER

    validators: tuple[ValidatorSpec, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "validators", tuple(self.validators))
        if not self.validators:
            raise SchemaDefinitionError("iter requires at least one validator")
        for spec in self.validators:
            if spec.kind in _FIELD_ONLY_KINDS:
                raise SchemaDefinitionError(f"{spec.kind.value} cannot be applied per element")


@dataclass(frozen=True)
class Nested(ValidatorSpec):
    """Run the nested record's full validation under this field's location."""

    kind: ClassVar[ValidatorKind] = ValidatorKind.NESTED


_FIELD_ONLY_KINDS = frozenset(
    {ValidatorKind.REQUIRED, ValidatorKind.MUST_MATCH, ValidatorKind.ITER, ValidatorKind.NESTED}
)


@dataclass(frozen=True)
class _FieldScope:
    record: Any
    schema: RecordSchema
    descriptor: FieldDescriptor
    traversal: Traversal

    @property
    def location(self) -> str:
        return join_location(self.descriptor.wire_name)


def collect_errors(record: Any, schema: RecordSchema | UnionSchema, traversal: Traversal) -> ValidationErrors:
    """Run every field validator, then every record-level validator."""
    schema = schema.for_record(record)
    errors = ValidationErrors()
    for descriptor in schema.fields:
        errors.merge(_validate_field(record, schema, descriptor, traversal))
    for check in schema.schema_validators:
        errors.merge(coerce_errors(check(record)))
    return errors


def coerce_errors(result: Any) -> list[ValidationError]:
    """Normalize what a user hook returned into a list of errors."""
    if result is None:
        return []
    if isinstance(result, ValidationError):
        return [result]
    if isinstance(result, Iterable):
        return list(result)
    raise TypeError(f"Validation hooks must return None or ValidationError values, got {type(result).__name__}")


def _validate_field(
    record: Any,
    schema: RecordSchema,
    descriptor: FieldDescriptor,
    traversal: Traversal,
) -> ValidationErrors:
    errors = ValidationErrors()
    staged = traversal.staged.get(descriptor.name)
    if staged is not None:
        errors.merge(staged)
    if descriptor.name in traversal.unresolved:
        return errors

    value = get_value(record, descriptor.name)
    scope = _FieldScope(record=record, schema=schema, descriptor=descriptor, traversal=traversal)
    for spec in descriptor.validators:
        if value is None and spec.kind is not ValidatorKind.REQUIRED:
            continue
        for error in _run(spec, value, scope):
            errors.add(error.located(scope.location, descriptor.wire_name))
    return errors


def _run(spec: ValidatorSpec, value: Any, scope: _FieldScope) -> list[ValidationError]:
    return _CHECKS[spec.kind](spec, value, scope)


def _predicate_check(predicate: Callable[[Any], bool]) -> Callable[[ValidatorSpec, Any, _FieldScope], list[ValidationError]]:
    def check(spec: ValidatorSpec, value: Any, _: _FieldScope) -> list[ValidationError]:
        if predicate(value):
            return []
        return [spec.error(actual=value)]

    return check


def _check_ip(spec: Ip, value: Any, _: _FieldScope) -> list[ValidationError]:
    if predicates.is_ip(value, spec.version):
        return []
    return [spec.error(actual=value)]


def _check_regex(spec: Regex, value: Any, _: _FieldScope) -> list[ValidationError]:
    if predicates.matches(spec.pattern, value):
        return []
    return [spec.error(actual=value)]


def _check_length(spec: Length, value: Any, _: _FieldScope) -> list[ValidationError]:
    length = len(value)
    if spec.equal is not None:
        bound = spec.equal if length != spec.equal else None
    elif spec.min is not None and length < spec.min:
        bound = spec.min
    elif spec.max is not None and length > spec.max:
        bound = spec.max
    else:
        bound = None
    if bound is None:
        return []
    return [spec.error(actual=length, target=bound)]


def _check_range(spec: Range, value: Any, _: _FieldScope) -> list[ValidationError]:
    if spec.min is not None and value < spec.min:
        return [spec.error(actual=value, target=spec.min)]
    if spec.max is not None and value > spec.max:
        return [spec.error(actual=value, target=spec.max)]
    return []


def _check_contains(spec: Contains, value: Any, _: _FieldScope) -> list[ValidationError]:
    found = spec.needle in value
    if found == (spec.kind is ValidatorKind.CONTAINS):
        return []
    return [spec.error(actual=value, target=spec.needle)]


def _check_membership(spec: IsIn, value: Any, _: _FieldScope) -> list[ValidationError]:
    inside = value in spec.collection
    if inside == (spec.kind is ValidatorKind.IS_IN):
        return []
    return [spec.error(actual=value)]


def _check_required(spec: Required, value: Any, _: _FieldScope) -> list[ValidationError]:
    if value is not None:
        return []
    return [spec.error()]


def _check_must_match(spec: MustMatch, value: Any, scope: _FieldScope) -> list[ValidationError]:
    other = get_value(scope.record, spec.other)
    if value == other:
        return []
    return [spec.error(actual=value, target=other)]


def _check_custom(spec: Custom, value: Any, _: _FieldScope) -> list[ValidationError]:
    errors = coerce_errors(spec.function(value))
    if spec.code is not None:
        errors = [error.with_code(spec.code) for error in errors]
    if spec.message is not None:
        errors = [error.with_message(spec.message) for error in errors]
    return errors


def _check_time(spec: Time, value: Any, _: _FieldScope) -> list[ValidationError]:
    try:
        comparison = temporal.compare(
            value,
            spec.op,
            target=spec.target,
            format=spec.format,
            interval=spec.interval,
            inclusive=spec.inclusive,
            with_time=spec.time,
            clock=spec.clock,
        )
    except temporal.TargetParseError as exc:
        return [spec.error(actual=value, format=exc.format)]
    if comparison.passed:
        return []
    return [spec.error(**comparison.params)]


def _check_iter(spec: Iter, value: Any, scope: _FieldScope) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for segment, element in iter_elements(value):
        if element is None:
            continue
        location = scope.location + join_location(segment)
        for sub_spec in spec.validators:
            for error in _run(sub_spec, element, scope):
                errors.append(error.located(location, scope.descriptor.wire_name))
    return errors


def _check_nested(spec: Nested, value: Any, scope: _FieldScope) -> list[ValidationError]:
    traversal = scope.traversal
    if not traversal.descend:
        return []
    descriptor = scope.descriptor
    if not traversal.can_descend:
        return [ValidationError.field_error("max_depth", target=traversal.max_depth)]

    child = traversal.child()
    if not descriptor.kind.collection:
        return list(collect_errors(value, descriptor.schema, child).prefixed(descriptor.wire_name))

    errors: list[ValidationError] = []
    for segment, element in iter_elements(value):
        if element is not None:
            errors.extend(collect_errors(element, descriptor.schema, child).prefixed(descriptor.wire_name, segment))
    return errors


_CHECKS: dict[ValidatorKind, Callable[[Any, Any, _FieldScope], list[ValidationError]]] = {
    ValidatorKind.EMAIL: _predicate_check(predicates.is_email),
    ValidatorKind.URL: _predicate_check(predicates.is_url),
    ValidatorKind.PHONE: _predicate_check(predicates.is_phone),
    ValidatorKind.CREDIT_CARD: _predicate_check(predicates.is_credit_card),
    ValidatorKind.NON_CONTROL_CHAR: _predicate_check(predicates.has_no_control_characters),
    ValidatorKind.IP: _check_ip,
    ValidatorKind.REGEX: _check_regex,
    ValidatorKind.LENGTH: _check_length,
    ValidatorKind.RANGE: _check_range,
    ValidatorKind.CONTAINS: _check_contains,
    ValidatorKind.CONTAINS_NOT: _check_contains,
    ValidatorKind.IS_IN: _check_membership,
    ValidatorKind.NOT_IN: _check_membership,
    ValidatorKind.REQUIRED: _check_required,
    ValidatorKind.MUST_MATCH: _check_must_match,
    ValidatorKind.CUSTOM: _check_custom,
    ValidatorKind.TIME: _check_time,
    ValidatorKind.ITER: _check_iter,
    ValidatorKind.NESTED: _check_nested,
}
