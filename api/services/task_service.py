"""
Task Service
============

CRUD over the task store.

Tasks are not scoped to a user: any authenticated caller can read and
change every task. The principal is accepted for logging only.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional, Union

from api.services.stores import TaskStore
from exceptions import NotFoundError
from models import Principal, Task, TaskCreate, TaskPatch, coerce, utcnow


logger = logging.getLogger(__name__)


class TaskService:
    """Create, read, update and delete tasks."""

    def __init__(self, store: TaskStore):
        self.store = store

    def list(self) -> List[Task]:
        """Every task in the store, oldest first. No filtering."""
        return sorted(self.store.find_all(), key=lambda task: task.created_at)

    def get(self, task_id: str) -> Task:
        task = self.store.find(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def create(
        self,
        data: Union[TaskCreate, Mapping[str, Any]],
        principal: Optional[Principal] = None
    ) -> Task:
        """
        Validate and persist a new task.

        Missing ``status`` / ``priority`` default to ``pending`` / ``medium``.

        Raises:
            ValidationError: Required field missing or enumeration unknown
        """
        payload = coerce(TaskCreate, data)
        now = utcnow()
        task = Task(
            id=uuid.uuid4().hex,
            created_at=now,
            updated_at=now,
            **payload.model_dump()
        )
        self.store.insert(task)

        logger.info(f"[{task.id}] Task created{_by(principal)}")
        return task

    def update(
        self,
        task_id: str,
        patch: Union[TaskPatch, Mapping[str, Any]],
        principal: Optional[Principal] = None
    ) -> Task:
        """
        Merge the supplied fields into a stored task.

        Raises:
            ValidationError: A supplied field is null or invalid
            NotFoundError: No task with this id
        """
        patch = coerce(TaskPatch, patch)
        current = self.get(task_id)

        updated = current.model_copy(update={**patch.changes(), "updated_at": utcnow()})
        if not self.store.replace(updated):
            raise NotFoundError("Task", task_id)

        logger.info(
            f"[{task_id}] Task updated{_by(principal)}: {sorted(patch.model_fields_set)}"
        )
        return updated

    def delete(self, task_id: str, principal: Optional[Principal] = None) -> None:
        """
        Permanently remove a task.

        Raises:
            NotFoundError: No task with this id
        """
        if not self.store.delete(task_id):
            raise NotFoundError("Task", task_id)
        logger.info(f"[{task_id}] Task deleted{_by(principal)}")


def _by(principal: Optional[Principal]) -> str:
    return f" by user {principal.user_id}" if principal else ""
