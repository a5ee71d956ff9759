"""
Rate Limiting Middleware
========================

Per-client request limits for the unauthenticated auth endpoints
(register and login), which are the ones open to credential guessing.
Task endpoints are behind the token gate and are not limited.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from config import get_settings
from exceptions import RateLimitError


# Keyed on the caller's address
limiter = Limiter(key_func=get_remote_address)


def auth_rate_limit() -> str:
    """Limit string for register/login, read from settings at request time."""
    return get_settings().auth_rate_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Report an exceeded limit like any other TaskBoardError."""
    error = RateLimitError(f"Too many requests: {exc.detail}", details={"limit": exc.detail})
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error.to_dict()
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Install the limiter on the app.

    Limits are only enforced when ``rate_limit_enabled`` is set; clients
    over the limit get a 429 in the common error shape.

    Routes opt in with the decorator, and must accept ``request``:

        @router.post("/login")
        @limiter.limit(auth_rate_limit)
        def login(request: Request, ...):
    """
    limiter.enabled = get_settings().rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
