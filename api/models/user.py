"""
User Models
===========

Pydantic models for user registration, login and token responses.
"""

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    """Registration payload."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "firstname": "Ada",
                "lastname": "Lovelace",
                "email": "ada@example.com",
                "password": "secret1"
            }
        }
    )

    firstname: str = Field(..., description="First name")
    lastname: str = Field(..., description="Last name")
    email: str = Field(..., description="Login email, unique per user")
    password: str = Field(..., description="Plain text password (min 6 characters)")


class UserLogin(BaseModel):
    """Login credentials."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "ada@example.com",
                "password": "secret1"
            }
        }
    )

    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Plain text password")


class TokenResponse(BaseModel):
    """Bearer token issued on registration or login."""

    token: str = Field(..., description="Signed bearer token for the Authorization header")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
