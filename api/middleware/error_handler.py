"""
Global Error Handling
=====================

Maps custom exceptions to HTTP status codes and formats error responses.

Every error body has the same shape:
    {"error_type": ..., "message": ..., "details": {...}}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exceptions import (
    TaskBoardError,
    ValidationError,
    ConflictError,
    AuthError,
    NotFoundError,
    RateLimitError,
    StoreError,
)
from config import get_settings


logger = logging.getLogger(__name__)


# Map exceptions to HTTP status codes
EXCEPTION_STATUS_MAP = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    RateLimitError: status.HTTP_429_TOO_MANY_REQUESTS,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: TaskBoardError) -> int:
    """HTTP status for an exception, honouring subclasses."""
    for exc_type in type(error).__mro__:
        if exc_type in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def taskboard_error_handler(request: Request, exc: TaskBoardError) -> JSONResponse:
    """Convert a TaskBoardError raised by a route or dependency."""
    status_code = status_for(exc)
    content = exc.to_dict()
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        # Backend errors can name hosts and ports
        if not get_settings().api_debug:
            content["message"] = "A storage error occurred"
            content["details"] = {}

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 in the common error shape."""
    error = ValidationError.from_pydantic(exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error.to_dict()
    )


async def error_handler_middleware(request: Request, call_next):
    """
    Last-resort handler for unexpected exceptions.

    Args:
        request: The incoming request
        call_next: The next middleware/route handler

    Returns:
        Response or JSONResponse with error details
    """
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        # Unexpected errors - hide details in production
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        settings = get_settings()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error_type": "InternalServerError",
                "message": "An unexpected error occurred",
                "details": {"error": str(e)} if settings.api_debug else {}
            }
        )


def setup_error_handlers(app: FastAPI) -> None:
    """Register the exception handlers and the fallback middleware."""
    app.add_exception_handler(TaskBoardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.middleware("http")(error_handler_middleware)
