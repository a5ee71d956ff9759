"""Tests for registration, login and token verification."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from api.services.auth_service import AuthService
from api.utils.security import create_access_token
from config import get_settings
from exceptions import AuthError, ConflictError, ValidationError


# =============================================================================
# Service
# =============================================================================

def test_register_then_login_issues_verifiable_tokens(auth_service: AuthService):
    registered = auth_service.register("Ada", "Lovelace", "ada@example.com", "secret1")
    logged_in = auth_service.login("ada@example.com", "secret1")

    first = auth_service.verify(registered)
    second = auth_service.verify(logged_in)
    assert first.user_id == second.user_id
    assert second.email == "ada@example.com"
    assert second.issued_at is not None


def test_register_stores_hash_not_password(auth_service: AuthService, credential_store):
    auth_service.register("Ada", "Lovelace", "ada@example.com", "secret1")

    user = credential_store.find_by_email("ada@example.com")
    assert user.password_hash != "secret1"
    assert user.password_hash.startswith("$2")
    assert "password_hash" not in user.to_public().model_dump()


def test_register_duplicate_email_conflicts_and_persists_nothing(
    auth_service: AuthService, credential_store
):
    auth_service.register("Ada", "Lovelace", "ada@example.com", "secret1")

    with pytest.raises(ConflictError):
        auth_service.register("Other", "Person", "ada@example.com", "secret2")

    assert credential_store.count() == 1


def test_email_is_matched_case_insensitively(auth_service: AuthService):
    auth_service.register("Ada", "Lovelace", "Ada@Example.com", "secret1")

    with pytest.raises(ConflictError):
        auth_service.register("Ada", "Lovelace", " ada@example.COM ", "secret1")
    assert auth_service.login("ADA@example.com", "secret1")


@pytest.mark.parametrize("field", ["firstname", "lastname", "email", "password"])
def test_register_missing_field_is_validation_error(
    auth_service: AuthService, credential_store, field
):
    fields = {"firstname": "Ada", "lastname": "L", "email": "ada@example.com", "password": "secret1"}
    fields[field] = "  " if field != "password" else None

    with pytest.raises(ValidationError) as exc_info:
        auth_service.register(**fields)

    assert exc_info.value.details["errors"][0]["field"] == field
    assert credential_store.count() == 0


def test_register_rejects_short_password_and_bad_email(auth_service: AuthService):
    with pytest.raises(ValidationError) as exc_info:
        auth_service.register("Ada", "L", "not-an-email", "12345")

    fields = {e["field"] for e in exc_info.value.details["errors"]}
    assert fields == {"email", "password"}


def test_login_failures_share_one_message(auth_service: AuthService):
    auth_service.register("Ada", "Lovelace", "ada@example.com", "secret1")

    with pytest.raises(AuthError) as wrong_password:
        auth_service.login("ada@example.com", "wrong-password")
    with pytest.raises(AuthError) as unknown_email:
        auth_service.login("nobody@example.com", "secret1")

    assert wrong_password.value.message == unknown_email.value.message


def test_login_missing_field_is_validation_error(auth_service: AuthService):
    with pytest.raises(ValidationError):
        auth_service.login("", "secret1")


def test_verify_rejects_token_without_subject(auth_service: AuthService):
    token = create_access_token({"email": "a@b.com"}, settings=get_settings())

    with pytest.raises(AuthError):
        auth_service.verify(token)


def test_verify_rejects_expired_token(auth_service: AuthService):
    token = create_access_token(
        {"sub": "user-1"},
        expires_delta=timedelta(minutes=-1),
        settings=get_settings()
    )

    with pytest.raises(AuthError):
        auth_service.verify(token)


# =============================================================================
# HTTP
# =============================================================================

def test_register_endpoint_returns_201_with_token(client: TestClient, registration: dict):
    response = client.post("/api/auth/register", json=registration)

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["token_type"] == "bearer"


def test_register_endpoint_duplicate_email_is_409(
    client: TestClient, token: str, registration: dict
):
    response = client.post("/api/auth/register", json=registration)

    assert response.status_code == 409
    assert response.json()["error_type"] == "ConflictError"


def test_register_endpoint_missing_field_is_400(client: TestClient, registration: dict):
    body = {k: v for k, v in registration.items() if k != "lastname"}

    response = client.post("/api/auth/register", json=body)

    assert response.status_code == 400
    data = response.json()
    assert data["error_type"] == "ValidationError"
    assert data["details"]["errors"][0]["field"] == "lastname"


def test_login_endpoint(client: TestClient, token: str, registration: dict):
    response = client.post(
        "/api/auth/login",
        json={"email": registration["email"], "password": registration["password"]}
    )

    assert response.status_code == 200
    assert response.json()["token"]


def test_login_endpoint_wrong_password_is_401(
    client: TestClient, token: str, registration: dict
):
    response = client.post(
        "/api/auth/login",
        json={"email": registration["email"], "password": "nope-nope"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_me_returns_profile_without_password(client: TestClient, auth_headers: dict):
    response = client.get("/api/auth/me", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "a@b.com"
    assert data["firstname"] == "A"
    assert "createdAt" in data
    assert "passwordHash" not in data and "password" not in data


def test_me_requires_token(client: TestClient):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_me_with_token_for_unknown_user_is_401(client: TestClient):
    token = jwt.encode(
        {"sub": "ghost"},
        get_settings().jwt_secret_key,
        algorithm=get_settings().jwt_algorithm
    )

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
