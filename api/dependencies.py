"""
Dependency Injection Functions
==============================

FastAPI dependency injection for stores, services and authentication.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.services.auth_service import AuthService
from api.services.stores import CredentialStore, TaskStore, create_stores
from api.services.task_service import TaskService
from config import Settings, get_settings
from exceptions import AuthError
from models import Principal

# Security scheme for JWT Bearer tokens
security = HTTPBearer(auto_error=False)


def _ensure_stores() -> dict:
    """
    Create the store pair on first use if the lifespan hook hasn't.

    Returns:
        The application state dict holding both stores
    """
    from api.main import app_state

    if "credential_store" not in app_state or "task_store" not in app_state:
        credential_store, task_store = create_stores(get_settings())
        app_state["credential_store"] = credential_store
        app_state["task_store"] = task_store
    return app_state


def get_credential_store() -> CredentialStore:
    """Dependency returning the user collection."""
    return _ensure_stores()["credential_store"]


def get_task_store() -> TaskStore:
    """Dependency returning the task collection."""
    return _ensure_stores()["task_store"]


def get_auth_service(
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(store, settings)


def get_task_service(store: TaskStore = Depends(get_task_store)) -> TaskService:
    return TaskService(store)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth: AuthService = Depends(get_auth_service)
) -> Principal:
    """
    Token gate: resolve the caller from the Authorization header.

    Use this dependency for every route that REQUIRES authentication.
    Both a missing header and a token that fails verification end the
    request with a 401 before the route body runs.

    Args:
        credentials: HTTP Authorization header with Bearer token
        auth: Auth service used to verify the token

    Returns:
        Principal: The authenticated user's id and email

    Raises:
        AuthError: Token missing or invalid
    """
    if credentials is None:
        raise AuthError("Authentication required")

    return auth.verify(credentials.credentials)
