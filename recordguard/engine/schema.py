"""Field descriptors and record schemas.

Schemas are immutable once built and safe to share across threads. Every
consistency check runs at construction, so a schema that builds is a schema the
executors can run.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any

from recordguard.core.errors import SchemaDefinitionError
from recordguard.engine.modifiers import ModifierKind
from recordguard.engine.modifiers import ModifierSpec
from recordguard.engine.validators import MustMatch
from recordguard.engine.validators import SchemaValidator
from recordguard.engine.validators import ValidatorKind
from recordguard.engine.validators import ValidatorSpec


class FieldKind(str, Enum):
    SCALAR = "scalar"
    OPTIONAL_SCALAR = "optional_scalar"
    COLLECTION = "collection"
    OPTIONAL_COLLECTION = "optional_collection"
    NESTED = "nested"
    OPTIONAL_NESTED = "optional_nested"

    @property
    def optional(self) -> bool:
        return self in (FieldKind.OPTIONAL_SCALAR, FieldKind.OPTIONAL_COLLECTION, FieldKind.OPTIONAL_NESTED)

    @property
    def collection(self) -> bool:
        return self in (FieldKind.COLLECTION, FieldKind.OPTIONAL_COLLECTION)

    @property
    def record(self) -> bool:
        return self in (FieldKind.NESTED, FieldKind.OPTIONAL_NESTED)


class RenamePolicy(str, Enum):
    """Case conventions applied to snake_case internal names."""

    LOWER = "lowercase"
    UPPER = "UPPERCASE"
    PASCAL = "PascalCase"
    CAMEL = "camelCase"
    SNAKE = "snake_case"
    SCREAMING_SNAKE = "SCREAMING_SNAKE_CASE"
    KEBAB = "kebab-case"
    SCREAMING_KEBAB = "SCREAMING-KEBAB-CASE"

    def apply(self, name: str) -> str:
        if self is RenamePolicy.LOWER:
            return name.lower()
        if self is RenamePolicy.UPPER:
            return name.upper()
        if self is RenamePolicy.SNAKE:
            return name
        if self is RenamePolicy.SCREAMING_SNAKE:
            return name.upper()
        if self is RenamePolicy.KEBAB:
            return name.replace("_", "-")
        if self is RenamePolicy.SCREAMING_KEBAB:
            return name.replace("_", "-").upper()

        pascal = "".join(word[:1].upper() + word[1:] for word in name.split("_"))
        if self is RenamePolicy.PASCAL:
            return pascal
        return pascal[:1].lower() + pascal[1:]


@dataclass(frozen=True)
class FieldDescriptor:
    """Declaration of one record field.

    ``wire_name`` is resolved by the owning :class:`RecordSchema`; set
    ``rename`` to pin a field's wire name explicitly.
    """

    name: str
    kind: FieldKind = FieldKind.SCALAR
    modifiers: tuple[ModifierSpec, ...] = ()
    validators: tuple[ValidatorSpec, ...] = ()
    rename: str | None = None
    schema: RecordSchema | UnionSchema | None = None
    wire_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", FieldKind(self.kind))
        object.__setattr__(self, "modifiers", tuple(self.modifiers))
        object.__setattr__(self, "validators", tuple(self.validators))
        if self.wire_name is None:
            object.__setattr__(self, "wire_name", self.rename or self.name)
        self._check()

    def _check(self) -> None:
        if not self.name:
            raise SchemaDefinitionError("field name must not be empty")
        if self.kind.record and self.schema is None:
            raise SchemaDefinitionError(f"{self.name}: nested fields need a schema")
        if self.schema is not None and not (self.kind.record or self.kind.collection):
            raise SchemaDefinitionError(f"{self.name}: only nested fields and collections can carry a schema")

        nested_specs = [spec for spec in self.modifiers if spec.kind is ModifierKind.NESTED]
        nested_specs += [spec for spec in self.validators if spec.kind is ValidatorKind.NESTED]
        if nested_specs and self.schema is None:
            raise SchemaDefinitionError(f"{self.name}: nested specs need a field schema")

        for spec in self.validators:
            if spec.kind is ValidatorKind.REQUIRED and not self.kind.optional:
                raise SchemaDefinitionError(f"{self.name}: required only applies to optional fields")
            if spec.kind is ValidatorKind.ITER and not self.kind.collection:
                raise SchemaDefinitionError(f"{self.name}: iter only applies to collections")

    @property
    def is_nested(self) -> bool:
        return self.schema is not None


@dataclass(frozen=True, eq=False)
class RecordSchema:
    """Ordered field descriptors plus record-level validators for one record type.

    A ``positional`` schema reads its payload as an array: each field's wire
    name is its index, so errors are located as ``/0``, ``/1`` and so on.
    """

    name: str
    fields: tuple[FieldDescriptor, ...]
    schema_validators: tuple[SchemaValidator, ...] = ()
    rename_all: RenamePolicy | None = None
    factory: Callable[..., Any] = dict
    positional: bool = False

    def __post_init__(self) -> None:
        policy = RenamePolicy(self.rename_all) if self.rename_all is not None else None
        object.__setattr__(self, "rename_all", policy)
        object.__setattr__(self, "schema_validators", tuple(self.schema_validators))
        if self.positional:
            if policy is not None:
                raise SchemaDefinitionError(f"{self.name}: positional schemas cannot rename fields")
            resolved = tuple(_positional_wire_name(self.name, index, d) for index, d in enumerate(self.fields))
        else:
            resolved = tuple(_resolve_wire_name(descriptor, policy) for descriptor in self.fields)
        object.__setattr__(self, "fields", resolved)

        by_name: dict[str, FieldDescriptor] = {}
        wire_names: set[str] = set()
        for descriptor in resolved:
            if descriptor.name in by_name:
                raise SchemaDefinitionError(f"{self.name}: duplicate field {descriptor.name!r}")
            if descriptor.wire_name in wire_names:
                raise SchemaDefinitionError(f"{self.name}: duplicate wire name {descriptor.wire_name!r}")
            by_name[descriptor.name] = descriptor
            wire_names.add(descriptor.wire_name)
        object.__setattr__(self, "_by_name", by_name)

        for descriptor in resolved:
            for spec in descriptor.validators:
                if isinstance(spec, MustMatch) and spec.other not in by_name:
                    raise SchemaDefinitionError(
                        f"{self.name}.{descriptor.name}: must_match refers to unknown field {spec.other!r}"
                    )

    def field(self, name: str) -> FieldDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"{self.name} has no field {name!r}") from None

    def required_fields(self) -> list[FieldDescriptor]:
        """Fields a payload must carry for staging to proceed."""
        return [descriptor for descriptor in self.fields if not descriptor.kind.optional]

    def for_record(self, record: Any) -> RecordSchema:
        return self

    def __repr__(self) -> str:
        return f"RecordSchema(name={self.name!r}, fields={[d.name for d in self.fields]!r})"


@dataclass(frozen=True, eq=False)
class UnionSchema:
    """Tagged union of record schemas, keyed by variant tag.

    Payloads are externally tagged: ``{"<tag>": <variant payload>}``. A strict
    record picks its variant through ``tag_of`` when given, otherwise by the
    first variant whose factory class it is an instance of. Variants add no
    location segment, so a variant's errors read as if its record stood in the
    union's place.
    """

    name: str
    variants: Mapping[str, RecordSchema]
    tag_of: Callable[[Any], str] | None = None

    def __post_init__(self) -> None:
        variants = dict(self.variants)
        if not variants:
            raise SchemaDefinitionError(f"{self.name}: a union needs at least one variant")
        for tag, schema in variants.items():
            if not isinstance(schema, RecordSchema):
                raise SchemaDefinitionError(f"{self.name}.{tag}: variants must be record schemas")
        object.__setattr__(self, "variants", variants)

    def variant(self, tag: str) -> RecordSchema | None:
        return self.variants.get(tag)

    def resolve(self, record: Any) -> tuple[str, RecordSchema]:
        """Return the tag and schema of the variant ``record`` belongs to."""
        if self.tag_of is not None:
            tag = self.tag_of(record)
            schema = self.variants.get(tag)
            if schema is None:
                raise SchemaDefinitionError(f"{self.name} has no variant {tag!r}")
            return tag, schema

        for tag, schema in self.variants.items():
            factory = schema.factory
            if isinstance(factory, type) and factory is not dict and isinstance(record, factory):
                return tag, schema
        raise SchemaDefinitionError(f"{self.name}: no variant matches {type(record).__name__}")

    def for_record(self, record: Any) -> RecordSchema:
        return self.resolve(record)[1]

    def __repr__(self) -> str:
        return f"UnionSchema(name={self.name!r}, variants={list(self.variants)!r})"


def _resolve_wire_name(descriptor: FieldDescriptor, policy: RenamePolicy | None) -> FieldDescriptor:
    if descriptor.rename is not None:
        wire_name = descriptor.rename
    elif policy is not None:
        wire_name = policy.apply(descriptor.name)
    else:
        wire_name = descriptor.name
    return dataclasses.replace(descriptor, wire_name=wire_name)


def _positional_wire_name(schema_name: str, index: int, descriptor: FieldDescriptor) -> FieldDescriptor:
    if descriptor.rename is not None:
        raise SchemaDefinitionError(f"{schema_name}.{descriptor.name}: positional fields cannot be renamed")
    return dataclasses.replace(descriptor, wire_name=str(index))
