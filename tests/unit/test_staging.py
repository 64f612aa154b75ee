"""Unit tests for payload staging and the public entry points."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from recordguard.core.errors import ValidationFailed
from recordguard.engine import modifiers
from recordguard.engine import validators
from recordguard.engine.errors import ValidationError
from recordguard.engine.schema import FieldDescriptor
from recordguard.engine.schema import FieldKind
from recordguard.engine.schema import RecordSchema
from recordguard.engine.schema import RenamePolicy
from recordguard.engine.staging import StageState
from recordguard.engine.staging import stage
from recordguard.engine.staging import stage_and_validate
from recordguard.engine.staging import to_payload
from recordguard.engine.staging import validify


@dataclass
class Address:
    city_country: str
    zip_code: str | None = None


@dataclass
class Customer:
    name: str
    address: Address | None
    contacts: list[Address] | None
    nickname: str | None = None


ADDRESS_SCHEMA = RecordSchema(
    name="Address",
    fields=(
        FieldDescriptor(
            "city_country",
            modifiers=(modifiers.Trim(), modifiers.Capitalize()),
            validators=(validators.Length(min=2),),
        ),
        FieldDescriptor("zip_code", FieldKind.OPTIONAL_SCALAR, validators=(validators.Length(equal=5),)),
    ),
    rename_all=RenamePolicy.CAMEL,
    factory=Address,
)


def _name_is_not_nickname(record: Customer) -> ValidationError | None:
    if record.nickname is not None and record.nickname == record.name:
        return ValidationError.schema_error("nickname_equals_name")
    return None


CUSTOMER_SCHEMA = RecordSchema(
    name="Customer",
    fields=(
        FieldDescriptor("name", modifiers=(modifiers.Trim(),), validators=(validators.Length(min=2),)),
        FieldDescriptor(
            "address",
            FieldKind.OPTIONAL_NESTED,
            modifiers=(modifiers.Nested(),),
            validators=(validators.Nested(),),
            schema=ADDRESS_SCHEMA,
        ),
        FieldDescriptor(
            "contacts",
            FieldKind.OPTIONAL_COLLECTION,
            validators=(validators.Nested(), validators.Length(max=2)),
            schema=ADDRESS_SCHEMA,
        ),
        FieldDescriptor("nickname", FieldKind.OPTIONAL_SCALAR, modifiers=(modifiers.Trim(),)),
    ),
    schema_validators=(_name_is_not_nickname,),
    factory=Customer,
)


def _failure(payload: object, target: object) -> list[tuple[str, str]]:
    with pytest.raises(ValidationFailed) as exc_info:
        stage_and_validate(payload, target)
    return [(error.location, error.code) for error in exc_info.value.errors]


def test_trim_lowercase_then_length_reports_modified_length() -> None:
    schema = RecordSchema(
        name="Sample",
        fields=(
            FieldDescriptor(
                "a",
                modifiers=(modifiers.Trim(), modifiers.Lowercase()),
                validators=(validators.Length(equal=8),),
            ),
        ),
    )

    with pytest.raises(ValidationFailed) as exc_info:
        stage_and_validate({"a": "  HELLO  "}, schema)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert (errors[0].code, errors[0].location) == ("length", "/a")
    assert dict(errors[0].params) == {"actual": 5, "target": 8}


def test_clean_payload_builds_modified_strict_record() -> None:
    customer = stage_and_validate(
        {
            "name": "  Ada ",
            "address": {"cityCountry": " oslo", "zipCode": "01234"},
            "contacts": [{"cityCountry": "bergen "}],
        },
        CUSTOMER_SCHEMA,
    )

    assert customer == Customer(
        name="Ada",
        address=Address(city_country="Oslo", zip_code="01234"),
        contacts=[Address(city_country="Bergen")],
    )


def test_missing_required_fields_reject_before_anything_else() -> None:
    result = stage({"address": {"cityCountry": "x"}, "nickname": "  "}, CUSTOMER_SCHEMA)

    assert result.state is StageState.REJECTED
    assert result.record is None
    assert [(error.location, error.code, error.field) for error in result.errors] == [("/name", "required", "name")]


def test_null_counts_as_missing_for_required_fields() -> None:
    assert _failure({"name": None}, CUSTOMER_SCHEMA) == [("/name", "required")]


def test_required_check_uses_wire_names() -> None:
    assert _failure({"city_country": "Oslo"}, ADDRESS_SCHEMA) == [("/cityCountry", "required")]


def test_nested_errors_keep_field_order() -> None:
    locations = _failure(
        {
            "name": "A",
            "address": {"cityCountry": "x", "zipCode": "1"},
            "contacts": [{"cityCountry": "Oslo"}, {"cityCountry": "y"}, {"cityCountry": "Rome"}],
        },
        CUSTOMER_SCHEMA,
    )

    assert locations == [
        ("/name", "length"),
        ("/address/cityCountry", "length"),
        ("/address/zipCode", "length"),
        ("/contacts/1/cityCountry", "length"),
        ("/contacts", "length"),
    ]


def test_rejected_child_is_reported_and_parent_keeps_checking() -> None:
    result = stage(
        {"name": "A", "address": {"zipCode": "1"}, "nickname": "A"},
        CUSTOMER_SCHEMA,
    )

    assert result.state is StageState.VALIDATED
    assert result.record.address is None
    assert [(error.location, error.code) for error in result.errors] == [
        ("/name", "length"),
        ("/address/cityCountry", "required"),
        ("/", "nickname_equals_name"),
    ]


def test_rejected_collection_elements_leave_placeholders_and_field_checks_run() -> None:
    result = stage(
        {"name": "Ada", "contacts": [{"cityCountry": "Oslo"}, {}, {"cityCountry": "Rome"}]},
        CUSTOMER_SCHEMA,
    )

    assert result.state is StageState.VALIDATED
    assert result.record.contacts == [Address(city_country="Oslo"), None, Address(city_country="Rome")]
    assert [(error.location, error.code) for error in result.errors] == [
        ("/contacts/1/cityCountry", "required"),
        ("/contacts", "length"),
    ]
    assert dict(result.errors[1].params) == {"actual": 3, "target": 2}


def test_schema_validators_run_when_a_collection_element_is_rejected() -> None:
    item = RecordSchema(name="Item", fields=(FieldDescriptor("v"),))
    schema = RecordSchema(
        name="Basket",
        fields=(
            FieldDescriptor(
                "items",
                FieldKind.COLLECTION,
                validators=(validators.Nested(), validators.Length(max=1)),
                schema=item,
            ),
        ),
        schema_validators=(lambda record: ValidationError.schema_error("basket_check"),),
    )

    assert _failure({"items": [{"v": 1}, {}, {"v": 2}]}, schema) == [
        ("/items/1/v", "required"),
        ("/items", "length"),
        ("/", "basket_check"),
    ]


def test_schema_validators_run_when_children_resolve() -> None:
    assert _failure({"name": "Ada", "nickname": " Ada "}, CUSTOMER_SCHEMA) == [("/", "nickname_equals_name")]


def test_strict_child_records_are_modified_and_validated() -> None:
    customer = stage_and_validate(
        {"name": "Ada", "address": Address(city_country="  rome ")},
        CUSTOMER_SCHEMA,
    )

    assert customer.address == Address(city_country="Rome")


def test_non_object_payload_is_invalid() -> None:
    result = stage(["name"], CUSTOMER_SCHEMA)

    assert result.state is StageState.REJECTED
    assert [(error.kind.value, error.code) for error in result.errors] == [("schema", "invalid_payload")]


def test_unknown_payload_keys_are_ignored() -> None:
    customer = stage_and_validate({"name": "Ada", "extra": 1}, CUSTOMER_SCHEMA)

    assert customer.name == "Ada"


def test_depth_bound_reports_max_depth(engine_env: pytest.MonkeyPatch) -> None:
    engine_env.setenv("RECORDGUARD_MAX_DEPTH", "1")
    leaf = RecordSchema(name="Leaf", fields=(FieldDescriptor("value"),))
    middle = RecordSchema(name="Middle", fields=(FieldDescriptor("leaf", FieldKind.NESTED, schema=leaf),))
    root = RecordSchema(name="Root", fields=(FieldDescriptor("middle", FieldKind.NESTED, schema=middle),))

    with pytest.raises(ValidationFailed) as exc_info:
        stage_and_validate({"middle": {"leaf": {"value": 1}}}, root)

    error = exc_info.value.errors[0]
    assert (error.location, error.code, dict(error.params)) == ("/middle/leaf", "max_depth", {"target": 1})


def test_modify_and_validate_are_idempotent_on_clean_records() -> None:
    customer = Customer(name=" Ada ", address=Address(city_country=" oslo "), contacts=None)

    validify(customer, CUSTOMER_SCHEMA)
    snapshot = Customer(
        name=customer.name,
        address=Address(city_country=customer.address.city_country),
        contacts=None,
    )
    validify(customer, CUSTOMER_SCHEMA)

    assert customer == snapshot


def test_validify_raises_with_all_errors() -> None:
    customer = Customer(name="A", address=Address(city_country="x"), contacts=None)

    with pytest.raises(ValidationFailed) as exc_info:
        validify(customer, CUSTOMER_SCHEMA)

    assert [error.location for error in exc_info.value.errors] == ["/name", "/address/cityCountry"]


def test_to_payload_uses_wire_names_and_round_trips() -> None:
    customer = Customer(
        name="Ada",
        address=Address(city_country="Oslo", zip_code="01234"),
        contacts=[Address(city_country="Rome")],
    )

    payload = to_payload(customer, CUSTOMER_SCHEMA)

    assert payload == {
        "name": "Ada",
        "address": {"cityCountry": "Oslo", "zipCode": "01234"},
        "contacts": [{"cityCountry": "Rome", "zipCode": None}],
        "nickname": None,
    }
    assert stage_and_validate(payload, CUSTOMER_SCHEMA) == customer
