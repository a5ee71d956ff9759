"""
TaskBoard HTTP Client
=====================

Thin httpx wrapper over the REST API.

Error responses are turned back into the exceptions the server raised
(400 -> ValidationError, 401 -> AuthError, 404 -> NotFoundError,
409 -> ConflictError, 429 -> RateLimitError, anything else -> StoreError),
so callers handle failures the same way whether they talk to the service
directly or over HTTP.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from client.session import SessionStore
from exceptions import (
    ApiConnectionError,
    AuthError,
    ConflictError,
    NotFoundError,
    RateLimitError,
    StoreError,
    TaskBoardError,
    ValidationError,
)
from models import PublicUser, Task, TaskCreate, TaskPatch


logger = logging.getLogger(__name__)

STATUS_ERRORS = {
    400: ValidationError,
    401: AuthError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def error_from_response(response: httpx.Response) -> TaskBoardError:
    """Rebuild the server-side exception from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    message = body.get("message") or body.get("detail") or response.reason_phrase
    details = body.get("details") if isinstance(body.get("details"), dict) else {}
    details["status_code"] = response.status_code

    error_cls = STATUS_ERRORS.get(response.status_code, StoreError)
    # Bypass the subclass constructors: the message is already formatted.
    error = error_cls.__new__(error_cls)
    TaskBoardError.__init__(error, str(message), details)
    return error


class TaskBoardClient:
    """
    Client for the TaskBoard REST API.

    The session supplies the bearer token for every call and receives the
    token returned by register/login.

    Example:
        >>> session = SessionStore("~/.taskboard/session.json")
        >>> session.load()
        >>> client = TaskBoardClient(session, base_url="http://localhost:5000")
        >>> client.login("ada@example.com", "secret1")
        >>> client.fetch_tasks()
    """

    def __init__(
        self,
        session: SessionStore,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None
    ):
        """
        Args:
            session: Token holder shared with the UI layer
            base_url: API root, used when no ``http`` client is given
            http: Preconfigured httpx client (e.g. a test client)
        """
        if http is None and base_url is None:
            raise ValueError("Either base_url or http is required")
        self.session = session
        self.http = http or httpx.Client(base_url=base_url)

    def close(self) -> None:
        self.http.close()

    # -- auth -----------------------------------------------------------------

    def register(self, firstname: str, lastname: str, email: str, password: str) -> str:
        """Create an account; the returned token is stored in the session."""
        data = self._request("POST", "/api/auth/register", json={
            "firstname": firstname,
            "lastname": lastname,
            "email": email,
            "password": password,
        })
        self.session.login(data["token"])
        return data["token"]

    def login(self, email: str, password: str) -> str:
        """Log in; the returned token is stored in the session."""
        data = self._request("POST", "/api/auth/login", json={
            "email": email,
            "password": password,
        })
        self.session.login(data["token"])
        return data["token"]

    def me(self) -> PublicUser:
        return PublicUser.model_validate(self._request("GET", "/api/auth/me"))

    # -- tasks ----------------------------------------------------------------

    def fetch_tasks(self) -> List[Task]:
        return [Task.model_validate(item) for item in self._request("GET", "/api/tasks")]

    def fetch_task(self, task_id: str) -> Task:
        return Task.model_validate(self._request("GET", f"/api/tasks/{task_id}"))

    def create_task(self, task: TaskCreate) -> Task:
        data = self._request("POST", "/api/tasks", json=task.to_document())
        return Task.model_validate(data)

    def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        body = patch.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return Task.model_validate(self._request("PUT", f"/api/tasks/{task_id}", json=body))

    def delete_task(self, task_id: str) -> str:
        return self._request("DELETE", f"/api/tasks/{task_id}")["message"]

    # -- plumbing -------------------------------------------------------------

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        headers = {}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"

        try:
            response = self.http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise ApiConnectionError(str(self.http.base_url), str(e)) from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        if response.is_error:
            raise error_from_response(response)
        return response.json()
