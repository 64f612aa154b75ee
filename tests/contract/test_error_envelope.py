"""Contract tests for the HTTP error envelope and the request body dependency."""

from __future__ import annotations

from dataclasses import asdict
from dataclasses import dataclass
from typing import Any

from fastapi import Depends
from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from recordguard.api.dependencies import validated_body
from recordguard.core.errors import ValidationFailed
from recordguard.core.errors import register_error_handlers
from recordguard.engine import modifiers
from recordguard.engine import validators
from recordguard.engine.errors import ValidationError
from recordguard.engine.errors import ValidationErrors
from recordguard.engine.schema import FieldDescriptor
from recordguard.engine.schema import FieldKind
from recordguard.engine.schema import RecordSchema
from recordguard.engine.schema import RenamePolicy


@dataclass
class Signup:
    email: str
    display_name: str
    referral_code: str | None = None


SIGNUP_SCHEMA = RecordSchema(
    name="Signup",
    fields=(
        FieldDescriptor("email", modifiers=(modifiers.Trim(), modifiers.Lowercase()), validators=(validators.Email(),)),
        FieldDescriptor("display_name", modifiers=(modifiers.Trim(),), validators=(validators.Length(min=2, max=20),)),
        FieldDescriptor("referral_code", FieldKind.OPTIONAL_SCALAR, validators=(validators.Regex(r"^[A-Z0-9]{6}$"),)),
    ),
    rename_all=RenamePolicy.CAMEL,
    factory=Signup,
)


def _build_client() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)

    @app.post("/signups")
    def create_signup(signup: Signup = Depends(validated_body(SIGNUP_SCHEMA))) -> dict[str, Any]:
        return asdict(signup)

    @app.get("/domain")
    def domain_error() -> None:
        raise ValidationFailed(ValidationErrors([ValidationError.schema_error("quota_exceeded", "Quota exceeded")]))

    return TestClient(app)


def test_valid_body_reaches_the_route_modified() -> None:
    client = _build_client()

    response = client.post("/signups", json={"email": " Jane@Acme.IO ", "displayName": " Jane "})

    assert response.status_code == 200
    assert response.json() == {"email": "jane@acme.io", "display_name": "Jane", "referral_code": None}


def test_violations_are_rendered_in_shared_envelope() -> None:
    client = _build_client()

    response = client.post(
        "/signups",
        json={"email": "nope", "displayName": "J", "referralCode": "abc"},
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["error"]["code"] == "validation_error"
    assert payload["error"]["message"] == "Request validation failed"
    assert payload["error"]["details"] == [
        {"kind": "field", "location": "/email", "code": "email", "field": "email", "params": {"actual": "nope"}},
        {
            "kind": "field",
            "location": "/displayName",
            "code": "length",
            "field": "displayName",
            "params": {"actual": 1, "target": 2},
        },
        {
            "kind": "field",
            "location": "/referralCode",
            "code": "regex",
            "field": "referralCode",
            "params": {"actual": "abc"},
        },
    ]


def test_missing_required_fields_are_reported_alone() -> None:
    client = _build_client()

    response = client.post("/signups", json={"displayName": "J"})

    assert response.status_code == 400
    assert response.json()["error"]["details"] == [
        {"kind": "field", "location": "/email", "code": "required", "field": "email", "params": {}},
    ]


@pytest.mark.parametrize("body", [b"[1, 2]", b"not json"])
def test_non_object_bodies_are_invalid_payloads(body: bytes) -> None:
    client = _build_client()

    response = client.post("/signups", content=body, headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"]["details"] == [
        {"kind": "schema", "location": "/", "code": "invalid_payload", "message": "Payload must be an object", "params": {}},
    ]


def test_domain_failures_use_shared_envelope() -> None:
    client = _build_client()

    response = client.get("/domain")

    assert response.status_code == 400
    assert response.json() == {
        "error": {
            "code": "validation_error",
            "message": "Request validation failed",
            "details": [
                {"kind": "schema", "location": "/", "code": "quota_exceeded", "message": "Quota exceeded", "params": {}},
            ],
        }
    }


def test_status_and_code_follow_settings(engine_env: pytest.MonkeyPatch) -> None:
    engine_env.setenv("RECORDGUARD_HTTP_ERROR_STATUS", "422")
    engine_env.setenv("RECORDGUARD_ERROR_CODE", "invalid_record")
    client = _build_client()

    response = client.get("/domain")

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "invalid_record"
