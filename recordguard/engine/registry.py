"""Process-wide mapping from record types to their schemas."""

from __future__ import annotations

import threading
from typing import Any
from typing import Union

from recordguard.core.errors import SchemaDefinitionError
from recordguard.engine.schema import RecordSchema
from recordguard.engine.schema import UnionSchema

Schema = Union[RecordSchema, UnionSchema]

_lock = threading.Lock()
_schemas: dict[type, Schema] = {}


def register_schema(schema: Schema, record_type: type | None = None) -> Schema:
    """Register ``schema`` for ``record_type`` (the schema's factory when it is a class).

    Unions have no factory of their own and always need ``record_type``, usually
    the base class of their variant records. Registering a different schema for
    an already registered type is an error.
    """
    if record_type is None:
        factory = getattr(schema, "factory", None)
        if not isinstance(factory, type) or factory is dict:
            raise SchemaDefinitionError(f"{schema.name}: pass record_type when the factory is not a record class")
        record_type = factory

    with _lock:
        existing = _schemas.get(record_type)
        if existing is not None and existing is not schema:
            raise SchemaDefinitionError(f"{record_type.__name__} already has schema {existing.name!r}")
        _schemas[record_type] = schema
    return schema


def unregister_schema(record_type: type) -> None:
    with _lock:
        _schemas.pop(record_type, None)


def schema_for(target: Any) -> Schema:
    """Resolve a schema, or the schema registered for a record type or its nearest base."""
    if isinstance(target, (RecordSchema, UnionSchema)):
        return target
    if isinstance(target, type):
        for cls in target.__mro__:
            schema = _schemas.get(cls)
            if schema is not None:
                return schema
    raise SchemaDefinitionError(f"No schema registered for {target!r}")
