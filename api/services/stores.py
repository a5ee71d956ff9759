"""
Document Stores
===============

Persistent collections for users (the credential store) and tasks.

Two backends share one interface:
- In-memory dictionaries (development and tests, non-persistent)
- Redis hashes holding one JSON document per record (persistent)

Every write touches exactly one document and is atomic on its own; there
are no multi-record transactions. Email uniqueness is enforced here, not in
the services, so two concurrent registrations can't both succeed.
"""

import json
import logging
import threading
from typing import Dict, List, Optional, Protocol, Tuple, Any

import redis

from config import Settings, get_settings
from exceptions import ConflictError, StoreError
from models import Task, User


logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Interface for the user collection."""

    def insert(self, user: User) -> None:
        """Persist a new user; raises ConflictError if the email is taken."""
        ...

    def find_by_email(self, email: str) -> Optional[User]:
        ...

    def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    def count(self) -> int:
        ...


class TaskStore(Protocol):
    """Interface for the task collection."""

    def find_all(self) -> List[Task]:
        ...

    def find(self, task_id: str) -> Optional[Task]:
        ...

    def insert(self, task: Task) -> None:
        ...

    def replace(self, task: Task) -> bool:
        """Overwrite an existing task. Returns False if it no longer exists."""
        ...

    def delete(self, task_id: str) -> bool:
        """Remove a task. Returns False if it didn't exist."""
        ...


# =============================================================================
# In-memory backend
# =============================================================================

class InMemoryCredentialStore:
    """User collection kept in a process-local dict."""

    def __init__(self):
        self._users: Dict[str, Dict[str, Any]] = {}
        self._ids_by_email: Dict[str, str] = {}
        self._lock = threading.Lock()

    def insert(self, user: User) -> None:
        with self._lock:
            if user.email in self._ids_by_email:
                raise ConflictError("Email already registered", field="email")
            self._ids_by_email[user.email] = user.id
            self._users[user.id] = user.to_document()

    def find_by_email(self, email: str) -> Optional[User]:
        user_id = self._ids_by_email.get(email)
        return self.find_by_id(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        document = self._users.get(user_id)
        return User.model_validate(document) if document else None

    def count(self) -> int:
        return len(self._users)


class InMemoryTaskStore:
    """Task collection kept in a process-local dict."""

    def __init__(self):
        self._tasks: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def find_all(self) -> List[Task]:
        with self._lock:
            documents = list(self._tasks.values())
        return [Task.model_validate(doc) for doc in documents]

    def find(self, task_id: str) -> Optional[Task]:
        document = self._tasks.get(task_id)
        return Task.model_validate(document) if document else None

    def insert(self, task: Task) -> None:
        with self._lock:
            self._tasks[task.id] = task.to_document()

    def replace(self, task: Task) -> bool:
        with self._lock:
            if task.id not in self._tasks:
                return False
            self._tasks[task.id] = task.to_document()
            return True

    def delete(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None


# =============================================================================
# Redis backend
# =============================================================================

# HSET only if the field is still present, so an update racing a delete
# can't bring the task back.
_REPLACE_IF_EXISTS = """
if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 1 then
    redis.call('HSET', KEYS[1], ARGV[1], ARGV[2])
    return 1
end
return 0
"""


class RedisCredentialStore:
    """
    User collection in Redis.

    Layout:
        {prefix}:users        hash  user id -> JSON document
        {prefix}:users:email  hash  email   -> user id (uniqueness index)
    """

    def __init__(self, client: redis.Redis, prefix: str = "taskboard"):
        self.redis_client = client
        self.users_key = f"{prefix}:users"
        self.email_index_key = f"{prefix}:users:email"

    def insert(self, user: User) -> None:
        try:
            claimed = self.redis_client.hsetnx(self.email_index_key, user.email, user.id)
            if not claimed:
                raise ConflictError("Email already registered", field="email")
        except redis.RedisError as e:
            raise StoreError("user insert", str(e)) from e

        try:
            self.redis_client.hset(self.users_key, user.id, json.dumps(user.to_document()))
        except redis.RedisError as e:
            # Release the email so the user can retry registration
            try:
                self.redis_client.hdel(self.email_index_key, user.email)
            except redis.RedisError:
                logger.warning(f"Could not release email index entry for user {user.id}")
            raise StoreError("user insert", str(e)) from e

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            user_id = self.redis_client.hget(self.email_index_key, email)
        except redis.RedisError as e:
            raise StoreError("user lookup", str(e)) from e
        return self.find_by_id(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            data = self.redis_client.hget(self.users_key, user_id)
        except redis.RedisError as e:
            raise StoreError("user lookup", str(e)) from e
        return User.model_validate(json.loads(data)) if data else None

    def count(self) -> int:
        try:
            return self.redis_client.hlen(self.users_key)
        except redis.RedisError as e:
            raise StoreError("user count", str(e)) from e


class RedisTaskStore:
    """
    Task collection in Redis.

    Layout:
        {prefix}:tasks  hash  task id -> JSON document
    """

    def __init__(self, client: redis.Redis, prefix: str = "taskboard"):
        self.redis_client = client
        self.tasks_key = f"{prefix}:tasks"
        self._replace_script = client.register_script(_REPLACE_IF_EXISTS)

    def find_all(self) -> List[Task]:
        try:
            documents = self.redis_client.hvals(self.tasks_key)
        except redis.RedisError as e:
            raise StoreError("task list", str(e)) from e
        return [Task.model_validate(json.loads(doc)) for doc in documents]

    def find(self, task_id: str) -> Optional[Task]:
        try:
            data = self.redis_client.hget(self.tasks_key, task_id)
        except redis.RedisError as e:
            raise StoreError("task lookup", str(e)) from e
        return Task.model_validate(json.loads(data)) if data else None

    def insert(self, task: Task) -> None:
        try:
            self.redis_client.hset(self.tasks_key, task.id, json.dumps(task.to_document()))
        except redis.RedisError as e:
            raise StoreError("task insert", str(e)) from e

    def replace(self, task: Task) -> bool:
        try:
            written = self._replace_script(
                keys=[self.tasks_key],
                args=[task.id, json.dumps(task.to_document())]
            )
        except redis.RedisError as e:
            raise StoreError("task update", str(e)) from e
        return written == 1

    def delete(self, task_id: str) -> bool:
        try:
            return self.redis_client.hdel(self.tasks_key, task_id) == 1
        except redis.RedisError as e:
            raise StoreError("task delete", str(e)) from e


def create_redis_client(settings: Settings) -> redis.Redis:
    """Build a Redis client from settings. Connects lazily on first command."""
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password or None,
        decode_responses=True,
        socket_connect_timeout=2
    )


def create_stores(
    settings: Optional[Settings] = None
) -> Tuple[CredentialStore, TaskStore]:
    """
    Factory for the configured store backend.

    Args:
        settings: Optional settings (uses global if None)

    Returns:
        (credential_store, task_store) sharing one backend
    """
    settings = settings or get_settings()

    if settings.storage_backend == "redis":
        client = create_redis_client(settings)
        logger.info(
            f"Using Redis stores at {settings.redis_host}:{settings.redis_port}"
            f"/{settings.redis_db}"
        )
        return (
            RedisCredentialStore(client, settings.redis_key_prefix),
            RedisTaskStore(client, settings.redis_key_prefix),
        )

    logger.info("Using in-memory stores (data is lost on restart)")
    return InMemoryCredentialStore(), InMemoryTaskStore()
