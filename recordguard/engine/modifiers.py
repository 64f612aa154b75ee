"""Modifier specs and the in-place modifier executor."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any
from typing import ClassVar
from typing import TYPE_CHECKING

from recordguard.engine.records import Traversal
from recordguard.engine.records import get_value
from recordguard.engine.records import iter_elements
from recordguard.engine.records import map_elements
from recordguard.engine.records import set_value

if TYPE_CHECKING:
    from recordguard.engine.schema import FieldDescriptor
    from recordguard.engine.schema import RecordSchema
    from recordguard.engine.schema import UnionSchema


class ModifierKind(str, Enum):
    TRIM = "trim"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    CAPITALIZE = "capitalize"
    CUSTOM = "custom"
    NESTED = "nested"


@dataclass(frozen=True)
class ModifierSpec:
    """Base of every declared modifier."""

    kind: ClassVar[ModifierKind]


@dataclass(frozen=True)
class Trim(ModifierSpec):
    kind: ClassVar[ModifierKind] = ModifierKind.TRIM


@dataclass(frozen=True)
class Uppercase(ModifierSpec):
    kind: ClassVar[ModifierKind] = ModifierKind.UPPERCASE


@dataclass(frozen=True)
class Lowercase(ModifierSpec):
    kind: ClassVar[ModifierKind] = ModifierKind.LOWERCASE


@dataclass(frozen=True)
class Capitalize(ModifierSpec):
    """Upper-case the first character and leave the rest untouched."""

    kind: ClassVar[ModifierKind] = ModifierKind.CAPITALIZE


@dataclass(frozen=True)
class Custom(ModifierSpec):
    """Replace the value with ``function(value)``.

    On collections the function runs per element unless ``per_element`` is
    off, in which case it receives the whole collection.
    """

    kind: ClassVar[ModifierKind] = ModifierKind.CUSTOM

    function: Callable[[Any], Any]
    per_element: bool = True


@dataclass(frozen=True)
class Nested(ModifierSpec):
    """Run the nested record's own modifiers at this point of the field's pass."""

    kind: ClassVar[ModifierKind] = ModifierKind.NESTED


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


_STRING_OPS: dict[ModifierKind, Callable[[str], str]] = {
    ModifierKind.TRIM: str.strip,
    ModifierKind.UPPERCASE: str.upper,
    ModifierKind.LOWERCASE: str.lower,
    ModifierKind.CAPITALIZE: _capitalize,
}


def modify_record(record: Any, schema: RecordSchema | UnionSchema, traversal: Traversal) -> None:
    """Apply every field's modifiers to ``record`` in declaration order."""
    schema = schema.for_record(record)
    for descriptor in schema.fields:
        if not descriptor.modifiers or descriptor.name in traversal.unresolved:
            continue
        value = get_value(record, descriptor.name)
        if value is None:
            continue
        for spec in descriptor.modifiers:
            value = _apply(spec, value, descriptor, traversal)
        set_value(record, descriptor.name, value)


def _apply(spec: ModifierSpec, value: Any, descriptor: FieldDescriptor, traversal: Traversal) -> Any:
    if spec.kind is ModifierKind.NESTED:
        _modify_nested(value, descriptor, traversal)
        return value

    if spec.kind is ModifierKind.CUSTOM:
        if descriptor.kind.collection and spec.per_element:
            return map_elements(value, spec.function)
        return spec.function(value)

    op = _STRING_OPS[spec.kind]
    if descriptor.kind.collection:
        return map_elements(value, op)
    return op(value)


def _modify_nested(value: Any, descriptor: FieldDescriptor, traversal: Traversal) -> None:
    # Past the depth bound the validator reports the violation.
    if not traversal.descend or not traversal.can_descend:
        return
    child = traversal.child()
    if not descriptor.kind.collection:
        modify_record(value, descriptor.schema, child)
        return
    for _, element in iter_elements(value):
        if element is not None:
            modify_record(element, descriptor.schema, child)
