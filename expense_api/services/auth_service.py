"""
Authentication service — signup, signin and profile business logic.

The router calls these functions and translates the results into HTTP
responses, so the logic can be tested without spinning up a web server.

Signup flow:
  1. Normalize the email (trim, lower-case) and check it isn't registered
  2. Hash the password with Argon2id
  3. Create the User
  4. Return a JWT token so the user is immediately signed in

Signin flow:
  1. Look up user by email
  2. Verify password against stored hash
  3. Return a JWT token

Security notes:
  - Signin returns the same error for "wrong password", "email not found"
    and "deactivated" to prevent user enumeration
  - JWT tokens are stateless, so signout has nothing to revoke server-side
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.exceptions import DuplicateEmailError, InvalidCredentialsError
from expense_api.models.user import User
from expense_api.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def signup(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    phone_number: str | None = None,
) -> tuple[User, str]:
    """
    Register a new user.

    Args:
        db: Database session.
        name: Display name.
        email: User's email (must be unique, compared case-insensitively).
        password: Plaintext password (will be hashed before storage).
        phone_number: Optional phone number.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        DuplicateEmailError: If the email is already registered.
    """
    email = _normalize_email(email)

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise DuplicateEmailError(email)

    user = User(
        name=name.strip(),
        email=email,
        hashed_password=hash_password(password),
        phone_number=phone_number or None,
    )
    db.add(user)
    # Flush to get user.id assigned for the token subject
    await db.flush()

    token = create_access_token(data={"sub": str(user.id)})
    logger.info("Registered user %s", user.id)
    return user, token


async def signin(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the email doesn't exist, the password is
                                 wrong, or the user is deactivated.
    """
    result = await db.execute(select(User).where(User.email == _normalize_email(email)))
    user = result.scalar_one_or_none()

    # Same error for every case, no user enumeration
    if not user:
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    if not user.is_active:
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(user.id)})
    return user, token


async def update_profile(
    db: AsyncSession,
    user: User,
    changes: dict,
) -> User:
    """
    Apply partial profile changes (name, phone_number, bio).

    Any other key, email included, is ignored. Email is the sign-in
    identifier and changing it needs a dedicated re-authentication flow.
    """
    for field in ("name", "phone_number", "bio"):
        if field in changes:
            setattr(user, field, changes[field])

    await db.flush()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()
