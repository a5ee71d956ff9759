"""
Authentication Endpoints
========================

User registration, login and current-user lookup.
"""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies import get_auth_service, get_current_user
from api.middleware.rate_limiter import limiter, auth_rate_limit
from api.models.responses import ErrorResponse
from api.models.user import TokenResponse, UserCreate, UserLogin
from api.services.auth_service import AuthService
from models import Principal, PublicUser

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or missing fields"},
        401: {"model": ErrorResponse, "description": "Authentication failed"},
    }
)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit(auth_rate_limit)
def register(
    request: Request,
    body: UserCreate,
    auth: AuthService = Depends(get_auth_service)
):
    """
    Create an account and return a bearer token for it.

    Raises:
        400: Missing field, malformed email or short password
        409: Email already registered
    """
    token = auth.register(body.firstname, body.lastname, body.email, body.password)
    return TokenResponse(token=token)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(auth_rate_limit)
def login(
    request: Request,
    body: UserLogin,
    auth: AuthService = Depends(get_auth_service)
):
    """
    Exchange email and password for a bearer token.

    Raises:
        400: Missing field
        401: Invalid email or password
    """
    token = auth.login(body.email, body.password)
    return TokenResponse(token=token)


@router.get("/me", response_model=PublicUser)
def me(
    principal: Principal = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service)
):
    """Profile of the user the bearer token belongs to."""
    return auth.get_user(principal.user_id)
