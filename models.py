"""
Domain Models for TaskBoard
===========================

This module defines the core data structures used throughout the application.
We use Pydantic for:

1. **Validation**: Enumerations and required fields are checked on write
2. **Serialization**: Records round-trip through the document stores as JSON
3. **Documentation**: The same models describe the REST payloads

Tasks and users are exchanged with camelCase keys (``dueDate``,
``createdAt``) because that is what the web client speaks; the Python side
keeps snake_case attribute names and accepts either spelling on input.

Design Principle: These models are "pure" - they have no dependencies on
the stores, the HTTP layer or the client.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from exceptions import ValidationError


ModelT = TypeVar("ModelT", bound=BaseModel)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def coerce(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Accept a model instance or raw mapping; raise our ValidationError on bad input."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


class TaskStatus(str, Enum):
    """
    Workflow state of a task.

    This is the canonical enumeration. Older web client builds send
    ``todo`` for new tasks; it is not an accepted value and such writes
    are rejected like any other unknown status.
    """
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DocumentModel(BaseModel):
    """Base for models exchanged as camelCase JSON documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-ready dict stored and returned by the API."""
        return self.model_dump(mode="json", by_alias=True)


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# =============================================================================
# Tasks
# =============================================================================

class TaskCreate(DocumentModel):
    """
    Fields accepted when creating a task.

    ``status`` and ``priority`` fall back to ``pending`` / ``medium``;
    ``description`` is required but may be an empty string.
    """
    title: str = Field(..., description="Short task title")
    description: str = Field(..., description="Free-form task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: date = Field(..., description="Calendar due date (YYYY-MM-DD)")
    completed: bool = Field(
        default=False,
        description="Client-side done flag, independent of status"
    )

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _not_blank(v)


class TaskPatch(DocumentModel):
    """
    Partial update of a task.

    Every field is present-or-absent: fields left out of the request keep
    their stored value, while a field sent as ``null`` is rejected because
    none of the task fields are nullable.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _not_blank(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "TaskPatch":
        nulled = sorted(
            name for name in self.model_fields_set if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields that were supplied, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class Task(DocumentModel):
    """A stored task, including its store-assigned identity."""
    id: str
    title: str
    description: str
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date
    completed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# Users & Tokens
# =============================================================================

class PublicUser(DocumentModel):
    """User profile as returned to clients (no password material)."""
    id: str
    firstname: str
    lastname: str
    email: str
    created_at: datetime


class User(PublicUser):
    """
    Stored user record.

    ``password_hash`` is a bcrypt hash; the plaintext password is never
    kept on this model.
    """
    password_hash: str

    def to_public(self) -> PublicUser:
        return PublicUser(**self.model_dump(exclude={"password_hash"}))


class Principal(BaseModel):
    """Identity recovered from a verified bearer token."""
    user_id: str
    email: Optional[str] = None
    issued_at: Optional[datetime] = None
