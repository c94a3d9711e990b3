"""
Pydantic schemas for authentication endpoints (signup and signin).

Pydantic validates incoming data automatically. If a required field is
missing or the wrong type, the request is rejected with a 400 validation
error before our code runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class UserSignupRequest(BaseModel):
    """Request body for POST /auth/signup."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    phone_number: str | None = Field(None, max_length=20)


class UserSigninRequest(BaseModel):
    """Request body for POST /auth/signin."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Response body for successful signin — contains the JWT."""
    token: str
    token_type: str = "bearer"


class SignupResponse(BaseModel):
    """Response body for successful signup — user info + JWT."""
    user_id: uuid.UUID
    name: str
    email: str
    token: str
    token_type: str = "bearer"


class SignoutResponse(BaseModel):
    detail: str = "Signed out. Discard the token on the client."
