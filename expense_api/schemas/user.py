"""
Pydantic schemas for User profile requests and responses.

hashed_password is NEVER included in any response schema.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserResponse(BaseModel):
    """Public representation of a User profile."""
    id: uuid.UUID
    name: str
    email: EmailStr
    phone_number: str | None
    bio: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdateRequest(BaseModel):
    """Request body for PATCH /auth/profile (all fields optional, email is not editable)."""
    name: str | None = Field(None, min_length=1, max_length=100)
    phone_number: str | None = Field(None, max_length=20)
    bio: str | None = Field(None, max_length=500)
