"""
Custom Exceptions for TaskBoard
===============================

This module defines a hierarchy of custom exceptions that:

1. **Categorize Errors**: Different exception types for different problems
2. **Carry Context**: Include relevant information for debugging
3. **Support APIs**: Map cleanly to HTTP status codes

Exception Hierarchy:
    TaskBoardError (base)
    ├── ValidationError        (400)
    ├── ConflictError          (409)
    ├── AuthError              (401)
    ├── NotFoundError          (404)
    ├── RateLimitError         (429)
    └── StoreError             (500)
        └── ApiConnectionError

The client maps HTTP error responses back onto the same classes, so calling
code handles a rejected request the same way on both sides of the wire.
"""

from typing import Optional


class TaskBoardError(Exception):
    """
    Base exception for all TaskBoard errors.

    All custom exceptions inherit from this, allowing code to catch
    all TaskBoard-related errors with a single except clause:

        try:
            service.create(payload)
        except TaskBoardError as e:
            logger.error(f"TaskBoard error: {e}")

    Attributes:
        message: Human-readable error description
        details: Additional context (dict for API responses)
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """
        Convert to dictionary for API responses.

        Returns a structured error that can be easily serialized to JSON.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(TaskBoardError):
    """Raised when a required field is missing or a value is malformed."""

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Build from a pydantic ValidationError, keeping per-field messages."""
        errors = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            errors.append({"field": field, "message": error.get("msg", "")})
        return cls.from_field_errors(errors)

    @classmethod
    def from_field_errors(cls, errors: list[dict]) -> "ValidationError":
        if not errors:
            return cls("Invalid request")
        summary = "; ".join(
            f"{e['field']}: {e['message']}" if e["field"] else e["message"]
            for e in errors
        )
        return cls(f"Invalid request: {summary}", details={"errors": errors})


class ConflictError(TaskBoardError):
    """Raised when a write collides with an existing unique value."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            details={"field": field} if field else {}
        )


class AuthError(TaskBoardError):
    """Raised for bad credentials and missing, invalid or expired tokens."""
    pass


class RateLimitError(TaskBoardError):
    """Raised when a client sends too many auth requests in the limit window."""
    pass


class NotFoundError(TaskBoardError):
    """Raised when an operation targets a record that doesn't exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found",
            details={
                "resource": resource,
                "id": resource_id
            }
        )


class StoreError(TaskBoardError):
    """Raised when the underlying persistence layer fails."""

    def __init__(self, operation: str, original_error: str):
        super().__init__(
            message=f"Storage failure during {operation}: {original_error}",
            details={
                "operation": operation,
                "original_error": original_error
            }
        )


class ApiConnectionError(StoreError):
    """Raised by the client when the API server can't be reached."""

    def __init__(self, url: str, original_error: str):
        TaskBoardError.__init__(
            self,
            message=f"Cannot reach TaskBoard API at {url}: {original_error}",
            details={
                "api_url": url,
                "original_error": original_error,
                "hint": "Make sure the API is running: 'uvicorn api.main:app'"
            }
        )
