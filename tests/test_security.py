"""Tests for token signing and password hashing."""

from datetime import timedelta

import pytest
from jose import JWTError, jwt

from api.utils.security import (
    create_access_token,
    hash_password,
    verify_password,
    verify_token,
)
from config import get_settings_for_testing


@pytest.fixture(name="settings")
def settings_fixture():
    return get_settings_for_testing(jwt_secret_key="unit-secret", password_hash_rounds=4)


def test_token_round_trip_keeps_claims(settings):
    token = create_access_token({"sub": "user-1", "email": "a@b.com"}, settings=settings)

    payload = verify_token(token, settings)

    assert payload["sub"] == "user-1"
    assert payload["email"] == "a@b.com"
    assert "iat" in payload


def test_token_has_no_expiry_by_default(settings):
    token = create_access_token({"sub": "user-1"}, settings=settings)

    assert "exp" not in jwt.get_unverified_claims(token)


def test_configured_lifetime_adds_expiry():
    settings = get_settings_for_testing(
        jwt_secret_key="unit-secret",
        jwt_access_token_expire_minutes=30
    )
    token = create_access_token({"sub": "user-1"}, settings=settings)

    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - claims["iat"] == 30 * 60


def test_expired_token_is_rejected(settings):
    token = create_access_token(
        {"sub": "user-1"},
        expires_delta=timedelta(seconds=-10),
        settings=settings
    )

    with pytest.raises(JWTError):
        verify_token(token, settings)


def test_token_signed_with_other_secret_is_rejected(settings):
    forged = jwt.encode({"sub": "user-1"}, "not-the-secret", algorithm="HS256")

    with pytest.raises(JWTError):
        verify_token(forged, settings)


def test_garbage_token_is_rejected(settings):
    with pytest.raises(JWTError):
        verify_token("not.a.token", settings)


def test_password_hash_verifies_only_the_original(settings):
    hashed = hash_password("secret1", settings)

    assert hashed != "secret1"
    assert verify_password("secret1", hashed, settings)
    assert not verify_password("secret2", hashed, settings)
