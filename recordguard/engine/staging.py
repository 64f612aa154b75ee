"""Payload staging and the public entry points.

A payload is staged in a fixed order. Required fields are checked first, and a
payload missing any of them is rejected with nothing else run. Otherwise the
values are converted to internal names and nested payloads are staged
depth-first. The strict record is then built with the schema's factory,
modified and validated.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any

from recordguard.core.config import get_engine_settings
from recordguard.core.errors import ValidationFailed
from recordguard.engine.errors import ValidationError
from recordguard.engine.errors import ValidationErrors
from recordguard.engine.errors import join_location
from recordguard.engine.modifiers import modify_record
from recordguard.engine.records import Traversal
from recordguard.engine.records import get_value
from recordguard.engine.records import iter_elements
from recordguard.engine.records import map_elements
from recordguard.engine.registry import Schema
from recordguard.engine.registry import schema_for
from recordguard.engine.schema import FieldDescriptor
from recordguard.engine.schema import RecordSchema
from recordguard.engine.schema import UnionSchema
from recordguard.engine.validators import collect_errors

logger = logging.getLogger(__name__)


class StageState(str, Enum):
    STAGED = "staged"
    REQUIRED_CHECKED = "required_checked"
    REJECTED = "rejected"
    CONVERTED = "converted"
    CHILDREN_STAGED = "children_staged"
    MODIFIED = "modified"
    VALIDATED = "validated"


@dataclass(frozen=True)
class StageResult:
    """Outcome of staging one payload; ``record`` is ``None`` when rejected."""

    record: Any
    errors: ValidationErrors
    state: StageState

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> Any:
        """Return the record or raise :class:`ValidationFailed` with every error."""
        if self.errors:
            raise ValidationFailed(self.errors)
        return self.record


def stage(payload: Any, target: Any) -> StageResult:
    """Stage ``payload`` against ``target`` (a schema or a registered record type)."""
    schema = schema_for(target)
    if not _is_payload(payload, schema):
        logger.debug("Rejected %s payload of type %s", schema.name, type(payload).__name__)
        shape = "an array" if _is_positional(schema) else "an object"
        errors = ValidationErrors([ValidationError.schema_error("invalid_payload", f"Payload must be {shape}")])
        return StageResult(record=None, errors=errors, state=StageState.REJECTED)
    return _stage(payload, schema, _root_traversal())


def stage_and_validate(payload: Any, target: Any) -> Any:
    """Build a modified, validated strict record from ``payload`` or raise :class:`ValidationFailed`."""
    return stage(payload, target).unwrap()


def modify(record: Any, schema: Schema | None = None) -> None:
    modify_record(record, _schema_of(record, schema), _root_traversal())


def validate(record: Any, schema: Schema | None = None) -> None:
    """Validate a strict record, raising :class:`ValidationFailed` on any violation."""
    errors = collect_errors(record, _schema_of(record, schema), _root_traversal())
    if errors:
        raise ValidationFailed(errors)


def validify(record: Any, schema: Schema | None = None) -> None:
    """Modify then validate a strict record."""
    resolved = _schema_of(record, schema)
    modify(record, resolved)
    validate(record, resolved)


def to_payload(record: Any, schema: Schema | None = None) -> Any:
    """Convert a strict record back to its payload form keyed by wire names.

    Positional records become lists and union records are wrapped in their
    variant tag.
    """
    resolved = _schema_of(record, schema)
    if isinstance(resolved, UnionSchema):
        tag, variant = resolved.resolve(record)
        return {tag: to_payload(record, variant)}

    payload: dict[str, Any] = {}
    for descriptor in resolved.fields:
        value = get_value(record, descriptor.name)
        if value is not None and descriptor.is_nested:
            value = _nested_payload(value, descriptor)
        payload[descriptor.wire_name] = value
    if resolved.positional:
        return list(payload.values())
    return payload


def _nested_payload(value: Any, descriptor: FieldDescriptor) -> Any:
    if not descriptor.kind.collection:
        return to_payload(value, descriptor.schema)
    if isinstance(value, (set, frozenset)):
        value = list(value)
    return map_elements(value, lambda element: to_payload(element, descriptor.schema))


def _schema_of(record: Any, schema: Schema | None) -> Schema:
    return schema_for(schema if schema is not None else type(record))


def _root_traversal() -> Traversal:
    return Traversal(depth=0, max_depth=get_engine_settings().max_depth)


def _is_positional(schema: Schema) -> bool:
    return isinstance(schema, RecordSchema) and schema.positional


def _is_payload(value: Any, schema: Schema) -> bool:
    if _is_positional(schema):
        return isinstance(value, (list, tuple))
    return isinstance(value, Mapping)


def _stage(payload: Any, schema: Schema, traversal: Traversal) -> StageResult:
    if isinstance(schema, UnionSchema):
        return _stage_variant(payload, schema, traversal)

    _transition(schema, traversal, StageState.STAGED)

    missing = _check_required(payload, schema)
    if missing:
        logger.debug("Rejected %s payload: %d required field(s) missing", schema.name, len(missing))
        return StageResult(record=None, errors=missing, state=StageState.REJECTED)
    _transition(schema, traversal, StageState.REQUIRED_CHECKED)

    values = _convert(payload, schema)
    _transition(schema, traversal, StageState.CONVERTED)
    staged, unresolved = _stage_children(values, schema, traversal)
    _transition(schema, traversal, StageState.CHILDREN_STAGED)
    record = schema.factory(**values)

    # Children are already modified and validated; only their errors are carried.
    settle = dataclasses.replace(traversal, descend=False, staged=staged, unresolved=frozenset(unresolved))
    modify_record(record, schema, settle)
    _transition(schema, traversal, StageState.MODIFIED)
    errors = collect_errors(record, schema, settle)
    logger.debug("Validated %s record with %d error(s)", schema.name, len(errors))
    return StageResult(record=record, errors=errors, state=StageState.VALIDATED)


def _stage_variant(payload: Mapping[str, Any], schema: UnionSchema, traversal: Traversal) -> StageResult:
    tags = list(payload)
    variant = schema.variant(tags[0]) if len(tags) == 1 else None
    if variant is None:
        logger.debug("Rejected %s payload with tags %r", schema.name, tags)
        error = ValidationError.field_error("variant", actual=tags, target=list(schema.variants))
        return StageResult(record=None, errors=ValidationErrors([error]), state=StageState.REJECTED)
    return _stage_child(payload[tags[0]], variant, traversal)


def _transition(schema: RecordSchema, traversal: Traversal, state: StageState) -> None:
    logger.debug("%s at depth %d -> %s", schema.name, traversal.depth, state.value)


def _payload_value(payload: Any, schema: RecordSchema, descriptor: FieldDescriptor) -> Any:
    if schema.positional:
        index = int(descriptor.wire_name)
        return payload[index] if index < len(payload) else None
    return payload.get(descriptor.wire_name)


def _check_required(payload: Any, schema: RecordSchema) -> ValidationErrors:
    errors = ValidationErrors()
    for descriptor in schema.required_fields():
        if _payload_value(payload, schema, descriptor) is None:
            errors.add(
                ValidationError.field_error(
                    "required",
                    field=descriptor.wire_name,
                    location=join_location(descriptor.wire_name),
                )
            )
    return errors


def _convert(payload: Any, schema: RecordSchema) -> dict[str, Any]:
    return {descriptor.name: _payload_value(payload, schema, descriptor) for descriptor in schema.fields}


def _stage_children(
    values: dict[str, Any],
    schema: RecordSchema,
    traversal: Traversal,
) -> tuple[dict[str, ValidationErrors], set[str]]:
    """Stage nested values in place; return their errors and the fields left unresolved.

    A rejected nested record leaves its field unresolved, so the field's own
    validators are skipped. A collection keeps ``None`` in place of each
    rejected element and stays resolved.
    """
    staged: dict[str, ValidationErrors] = {}
    unresolved: set[str] = set()
    for descriptor in schema.fields:
        value = values[descriptor.name]
        if value is None or not descriptor.is_nested:
            continue

        if not traversal.can_descend:
            error = ValidationError.field_error(
                "max_depth",
                field=descriptor.wire_name,
                location=join_location(descriptor.wire_name),
                target=traversal.max_depth,
            )
            staged[descriptor.name] = ValidationErrors([error])
            unresolved.add(descriptor.name)
            values[descriptor.name] = None
            continue

        child = traversal.child()
        if descriptor.kind.collection:
            value, errors = _stage_collection(value, descriptor, child)
        else:
            result = _stage_child(value, descriptor.schema, child)
            value = result.record
            errors = result.errors.prefixed(descriptor.wire_name)
            if result.state is StageState.REJECTED:
                unresolved.add(descriptor.name)

        values[descriptor.name] = value
        if errors:
            staged[descriptor.name] = errors
    return staged, unresolved


def _stage_collection(
    collection: Any,
    descriptor: FieldDescriptor,
    traversal: Traversal,
) -> tuple[Any, ValidationErrors]:
    errors = ValidationErrors()
    records: dict[Any, Any] = {}
    for segment, element in iter_elements(collection):
        if element is None:
            records[segment] = None
            continue
        result = _stage_child(element, descriptor.schema, traversal)
        errors.merge(result.errors.prefixed(descriptor.wire_name, segment))
        records[segment] = result.record

    if isinstance(collection, Mapping):
        return records, errors
    if isinstance(collection, tuple):
        return tuple(records.values()), errors
    return list(records.values()), errors


def _stage_child(value: Any, schema: Schema, traversal: Traversal) -> StageResult:
    if _is_payload(value, schema):
        return _stage(value, schema, traversal)

    # Already a strict record: it only needs its own modify and validate passes.
    modify_record(value, schema, traversal)
    errors = collect_errors(value, schema, traversal)
    return StageResult(record=value, errors=errors, state=StageState.VALIDATED)
