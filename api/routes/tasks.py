"""
Task Endpoints
==============

CRUD endpoints for tasks. Every route sits behind the token gate.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from api.dependencies import get_current_user, get_task_service
from api.models.responses import ErrorResponse, MessageResponse
from api.services.task_service import TaskService
from models import Principal, Task, TaskCreate, TaskPatch

router = APIRouter(
    dependencies=[Depends(get_current_user)],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid task fields"},
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    }
)


@router.get("", response_model=List[Task])
def list_tasks(tasks: TaskService = Depends(get_task_service)):
    """List every task. Filtering is left to the client."""
    return tasks.list()


@router.get("/{task_id}", response_model=Task)
def get_task(task_id: str, tasks: TaskService = Depends(get_task_service)):
    """Get a single task by ID."""
    return tasks.get(task_id)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service)
):
    """Create a task. ``status`` defaults to pending, ``priority`` to medium."""
    return tasks.create(body, principal)


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    body: TaskPatch,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service)
):
    """Update a task. Only the fields present in the body are changed."""
    return tasks.update(task_id, body, principal)


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service)
):
    """Delete a task permanently."""
    tasks.delete(task_id, principal)
    return MessageResponse(message="Task deleted successfully")
