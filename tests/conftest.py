"""Shared fixtures: fresh in-memory stores and an API test client per test."""

import os

# Settings are cached on first use, so these must be set before the app is imported.
os.environ["TASKBOARD_STORAGE_BACKEND"] = "memory"
os.environ["TASKBOARD_RATE_LIMIT_ENABLED"] = "false"
os.environ["TASKBOARD_PASSWORD_HASH_ROUNDS"] = "4"
os.environ["TASKBOARD_JWT_SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_credential_store, get_task_store
from api.main import app
from api.services.auth_service import AuthService
from api.services.stores import InMemoryCredentialStore, InMemoryTaskStore
from api.services.task_service import TaskService
from config import get_settings


REGISTRATION = {
    "firstname": "A",
    "lastname": "B",
    "email": "a@b.com",
    "password": "secret1",
}


@pytest.fixture(name="credential_store")
def credential_store_fixture():
    return InMemoryCredentialStore()


@pytest.fixture(name="task_store")
def task_store_fixture():
    return InMemoryTaskStore()


@pytest.fixture(name="auth_service")
def auth_service_fixture(credential_store):
    return AuthService(credential_store, get_settings())


@pytest.fixture(name="task_service")
def task_service_fixture(task_store):
    return TaskService(task_store)


@pytest.fixture(name="client")
def client_fixture(credential_store, task_store):
    """Create a test client wired to this test's stores."""
    app.dependency_overrides[get_credential_store] = lambda: credential_store
    app.dependency_overrides[get_task_store] = lambda: task_store
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="token")
def token_fixture(client: TestClient) -> str:
    """Register the default user through the API and return their token."""
    response = client.post("/api/auth/register", json=REGISTRATION)
    assert response.status_code == 201
    return response.json()["token"]


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="registration")
def registration_fixture() -> dict:
    """Registration payload of the default test user."""
    return dict(REGISTRATION)
