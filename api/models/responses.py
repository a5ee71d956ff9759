"""
API Response Models
===================

Pydantic models for API responses that aren't domain records.
"""

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. after a delete."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"message": "Task deleted successfully"}
        }
    )

    message: str = Field(..., description="Human-readable outcome")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response produced by the error handlers."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_type": "NotFoundError",
                "message": "Task not found",
                "details": {"resource": "Task", "id": "3f2c9a..."}
            }
        }
    )

    error_type: str = Field(..., description="Exception class name")
    message: str = Field(..., description="Human-readable error")
    details: dict = Field(default_factory=dict, description="Structured context")
