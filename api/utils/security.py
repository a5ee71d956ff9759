"""
Security Utilities
==================

JWT token generation/validation and password hashing.
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Dict, Any

from jose import jwt
from passlib.context import CryptContext

from config import Settings, get_settings


@lru_cache(maxsize=8)
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def verify_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token string
        settings: Optional settings (uses global if None)

    Returns:
        dict: The decoded token payload

    Raises:
        JWTError: If the token is malformed, tampered with or expired
    """
    settings = settings or get_settings()

    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm]
    )

    return payload


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None
) -> str:
    """
    Create a JWT access token.

    The token always carries an ``iat`` claim. An ``exp`` claim is added
    only when ``expires_delta`` is given or a lifetime is configured.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time
        settings: Optional settings (uses global if None)

    Returns:
        str: The encoded JWT token
    """
    settings = settings or get_settings()

    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode["iat"] = now

    if expires_delta is None and settings.jwt_access_token_expire_minutes:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    if expires_delta is not None:
        to_encode["exp"] = now + expires_delta

    encoded_jwt = jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )

    return encoded_jwt


def hash_password(password: str, settings: Optional[Settings] = None) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        settings: Optional settings (uses global if None)

    Returns:
        str: Hashed password
    """
    settings = settings or get_settings()
    return _password_context(settings.password_hash_rounds).hash(password)


def verify_password(
    plain_password: str,
    hashed_password: str,
    settings: Optional[Settings] = None
) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against
        settings: Optional settings (uses global if None)

    Returns:
        bool: True if password matches
    """
    settings = settings or get_settings()
    return _password_context(settings.password_hash_rounds).verify(
        plain_password, hashed_password
    )
