"""Record validation and normalization engine.

Modifier and validator specs live in :mod:`recordguard.engine.modifiers` and
:mod:`recordguard.engine.validators`, re-exported here as ``modifiers`` and
``validators``.
"""

from recordguard.core.errors import RecordGuardError
from recordguard.core.errors import SchemaDefinitionError
from recordguard.core.errors import ValidationFailed
from recordguard.core.errors import register_error_handlers
from recordguard.engine import modifiers
from recordguard.engine import validators
from recordguard.engine.errors import ErrorKind
from recordguard.engine.errors import ValidationError
from recordguard.engine.errors import ValidationErrors
from recordguard.engine.registry import register_schema
from recordguard.engine.registry import schema_for
from recordguard.engine.schema import FieldDescriptor
from recordguard.engine.schema import FieldKind
from recordguard.engine.schema import RecordSchema
from recordguard.engine.schema import RenamePolicy
from recordguard.engine.schema import UnionSchema
from recordguard.engine.staging import StageResult
from recordguard.engine.staging import StageState
from recordguard.engine.staging import modify
from recordguard.engine.staging import stage
from recordguard.engine.staging import stage_and_validate
from recordguard.engine.staging import to_payload
from recordguard.engine.staging import validate
from recordguard.engine.staging import validify
from recordguard.engine.temporal import Interval
from recordguard.engine.temporal import TimeOp

__all__ = [
    "ErrorKind",
    "FieldDescriptor",
    "FieldKind",
    "Interval",
    "RecordGuardError",
    "RecordSchema",
    "RenamePolicy",
    "SchemaDefinitionError",
    "StageResult",
    "StageState",
    "TimeOp",
    "UnionSchema",
    "ValidationError",
    "ValidationErrors",
    "ValidationFailed",
    "modifiers",
    "modify",
    "register_error_handlers",
    "register_schema",
    "schema_for",
    "stage",
    "stage_and_validate",
    "to_payload",
    "validate",
    "validators",
    "validify",
]
