"""
Authentication router — signup, signin, signout and profile endpoints.

Signup and signin are the only public endpoints in the API. Everything
else requires a valid JWT token.

Endpoints:
  POST  /auth/signup   — Register a new user and get a token
  POST  /auth/signin   — Authenticate and get a token
  POST  /auth/signout  — Acknowledge signout (tokens are stateless)
  GET   /auth/profile  — Get the current user's profile
  PATCH /auth/profile  — Update name, phone number and bio

Security notes:
  - Plaintext passwords exist only in memory during request processing;
    they are hashed before any database operation and never logged.
  - The request logging middleware records method, path and status only.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.database import get_db
from expense_api.dependencies import get_current_user
from expense_api.models.user import User
from expense_api.schemas.auth import (
    SignoutResponse,
    SignupResponse,
    TokenResponse,
    UserSigninRequest,
    UserSignupRequest,
)
from expense_api.schemas.user import UserResponse, UserUpdateRequest
from expense_api.services import auth_service

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def signup(
    request: UserSignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user and sign them in.

    - **name**: Required, 1-100 characters
    - **email**: Must be a valid email and not already registered
    - **password**: Minimum 8 characters
    - **phone_number**: Optional
    """
    user, token = await auth_service.signup(
        db=db,
        name=request.name,
        email=request.email,
        password=request.password,
        phone_number=request.phone_number,
    )

    return SignupResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        token=token,
    )


@router.post(
    "/signin",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def signin(
    request: UserSigninRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Returns a JWT bearer token to send on every later request:

        Authorization: Bearer <token>
    """
    user, token = await auth_service.signin(
        db=db,
        email=request.email,
        password=request.password,
    )

    return TokenResponse(token=token)


@router.post(
    "/signout",
    response_model=SignoutResponse,
    summary="Sign out",
)
async def signout(user: User = Depends(get_current_user)):
    """JWTs are stateless; the client signs out by discarding its token."""
    return SignoutResponse()


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get current user's profile",
)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.patch(
    "/profile",
    response_model=UserResponse,
    summary="Update profile fields",
)
async def update_profile(
    updates: UserUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the current user's profile.

    Only fields the client explicitly sent are changed (PATCH semantics).
    Email cannot be changed here.
    """
    return await auth_service.update_profile(
        db, user, updates.model_dump(exclude_unset=True)
    )
