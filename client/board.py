"""
Task Board State
================

Client-side task list, filter and per-action loading flags.

The board loads the full list once and derives filtered views locally;
changing the filter never calls the API. Creates, updates and deletes
touch the local list only after the server has confirmed them. Every
action ends in a notification, and an AuthError from the API logs the
session out.
"""

import logging
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from client.api_client import TaskBoardClient
from exceptions import AuthError, TaskBoardError
from models import Task, TaskCreate, TaskPatch, TaskStatus, coerce


logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


Notifier = Callable[[NoticeLevel, str], None]

FILTER_ALL = "all"
FILTER_COMPLETED = "completed"


def log_notifier(level: NoticeLevel, message: str) -> None:
    """Default notifier: route notices to the module logger."""
    if level == NoticeLevel.ERROR:
        logger.error(message)
    else:
        logger.info(message)


def parse_filter(value: str) -> str:
    """
    Validate a filter name.

    Accepted: ``all``, ``completed`` (the done flag) or any task status.
    ``completed`` names both a flag filter and a status; the flag wins.

    Raises:
        ValueError: Unknown filter
    """
    allowed = list(dict.fromkeys([FILTER_ALL, FILTER_COMPLETED] + [s.value for s in TaskStatus]))
    if value not in allowed:
        raise ValueError(f"Unknown filter '{value}'. Choose from: {', '.join(allowed)}")
    return value


def matches(task: Task, task_filter: str) -> bool:
    if task_filter == FILTER_ALL:
        return True
    if task_filter == FILTER_COMPLETED:
        return task.completed
    return task.status.value == task_filter


def is_overdue(task: Task, today: Optional[date] = None) -> bool:
    """
    Whether a task is past its due date and not yet done.

    A task due today is not overdue. Only the done flag counts, not status.
    """
    today = today or date.today()
    return task.due_date < today and not task.completed


class TaskBoard:
    """In-memory task list kept in step with the API."""

    def __init__(self, client: TaskBoardClient, notify: Optional[Notifier] = None):
        self.client = client
        self.notify = notify or log_notifier
        self.tasks: List[Task] = []
        self.filter = FILTER_ALL
        self.loading: Dict[str, bool] = {"create": False, "update": False, "delete": False}

    def set_filter(self, task_filter: str) -> None:
        self.filter = parse_filter(task_filter)

    def visible(self) -> List[Task]:
        """Tasks matching the current filter, in list order."""
        return [task for task in self.tasks if matches(task, self.filter)]

    def overdue(self, today: Optional[date] = None) -> List[Task]:
        return [task for task in self.tasks if is_overdue(task, today)]

    def load(self) -> bool:
        """Replace the local list with the server's."""
        try:
            self.tasks = self.client.fetch_tasks()
        except TaskBoardError as e:
            self._failed("Failed to load tasks", e)
            return False
        return True

    def add(self, data: Union[TaskCreate, dict]) -> Optional[Task]:
        """Create a task; append it locally once the server returns it."""
        self.loading["create"] = True
        try:
            task = self.client.create_task(coerce(TaskCreate, data))
        except TaskBoardError as e:
            self._failed("Failed to create task", e)
            return None
        finally:
            self.loading["create"] = False

        self.tasks.append(task)
        self.notify(NoticeLevel.SUCCESS, "Task created successfully")
        return task

    def edit(self, task_id: str, patch: Union[TaskPatch, dict]) -> Optional[Task]:
        """Update a task; swap in the server's copy once confirmed."""
        self.loading["update"] = True
        try:
            updated = self.client.update_task(task_id, coerce(TaskPatch, patch))
        except TaskBoardError as e:
            self._failed("Failed to update task", e)
            return None
        finally:
            self.loading["update"] = False

        self.tasks = [updated if task.id == task_id else task for task in self.tasks]
        self.notify(NoticeLevel.SUCCESS, "Task updated")
        return updated

    def remove(self, task_id: str) -> bool:
        """Delete a task; drop it locally once the server confirms."""
        self.loading["delete"] = True
        try:
            self.client.delete_task(task_id)
        except TaskBoardError as e:
            self._failed("Failed to delete task", e)
            return False
        finally:
            self.loading["delete"] = False

        self.tasks = [task for task in self.tasks if task.id != task_id]
        self.notify(NoticeLevel.SUCCESS, "Task deleted successfully")
        return True

    def _failed(self, action: str, error: TaskBoardError) -> None:
        self.notify(NoticeLevel.ERROR, f"{action}: {error.message}")
        if isinstance(error, AuthError):
            logger.info("Session rejected by the API, logging out")
            self.client.session.logout()
            self.tasks = []
