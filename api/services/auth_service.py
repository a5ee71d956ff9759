"""
Auth Service
============

Registration, login and bearer-token verification.

Tokens are JWTs signed with the server secret and carry the user id
(``sub``), the email and the issue time. Verification needs no store
lookup; the signature alone proves the token was issued here.
"""

import logging
import uuid
from typing import Optional

from jose import JWTError

from api.services.stores import CredentialStore
from api.utils.security import (
    create_access_token,
    hash_password,
    verify_password,
    verify_token,
)
from config import Settings, get_settings
from exceptions import AuthError, ValidationError
from models import Principal, PublicUser, User, utcnow


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Issues and verifies bearer tokens for users in a credential store.

    Example:
        >>> auth = AuthService(InMemoryCredentialStore())
        >>> token = auth.register("Ada", "Lovelace", "ada@example.com", "secret1")
        >>> auth.verify(token).email
        'ada@example.com'
    """

    def __init__(self, store: CredentialStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def register(
        self,
        firstname: Optional[str],
        lastname: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> str:
        """
        Create a user and return a token for them.

        Raises:
            ValidationError: A field is missing or blank, the email is
                malformed, or the password is too short
            ConflictError: The email is already registered
        """
        errors = _missing_fields(
            firstname=firstname, lastname=lastname, email=email, password=password
        )
        if email and "@" not in email.strip():
            errors.append({"field": "email", "message": "must be a valid email address"})
        min_length = self.settings.password_min_length
        if password and len(password) < min_length:
            errors.append({
                "field": "password",
                "message": f"must be at least {min_length} characters"
            })
        if errors:
            raise ValidationError.from_field_errors(errors)

        user = User(
            id=uuid.uuid4().hex,
            firstname=firstname.strip(),
            lastname=lastname.strip(),
            email=normalize_email(email),
            password_hash=hash_password(password, self.settings),
            created_at=utcnow(),
        )
        self.store.insert(user)

        logger.info(f"Registered user {user.id}")
        return self._issue(user)

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Check credentials and return a fresh token.

        Unknown emails and wrong passwords fail with the same message.

        Raises:
            ValidationError: email or password missing
            AuthError: Credentials don't match a user
        """
        errors = _missing_fields(email=email, password=password)
        if errors:
            raise ValidationError.from_field_errors(errors)

        user = self.store.find_by_email(normalize_email(email))
        if user is None or not verify_password(password, user.password_hash, self.settings):
            logger.info("Rejected login attempt")
            raise AuthError(INVALID_CREDENTIALS)

        logger.info(f"User {user.id} logged in")
        return self._issue(user)

    def verify(self, token: str) -> Principal:
        """
        Recover the principal from a token.

        Raises:
            AuthError: Token is malformed, tampered with, expired or has no subject
        """
        try:
            payload = verify_token(token, self.settings)
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise AuthError("Could not validate credentials") from e

        user_id = payload.get("sub")
        if not user_id:
            raise AuthError("Could not validate credentials")

        issued_at = payload.get("iat")
        return Principal(
            user_id=user_id,
            email=payload.get("email"),
            issued_at=issued_at,
        )

    def get_user(self, user_id: str) -> PublicUser:
        """Profile of an authenticated user; AuthError if they no longer exist."""
        user = self.store.find_by_id(user_id)
        if user is None:
            raise AuthError("User no longer exists")
        return user.to_public()

    def _issue(self, user: User) -> str:
        return create_access_token(
            {"sub": user.id, "email": user.email},
            settings=self.settings
        )


def _missing_fields(**fields: Optional[str]) -> list[dict]:
    return [
        {"field": name, "message": "is required"}
        for name, value in fields.items()
        if value is None or not str(value).strip()
    ]
