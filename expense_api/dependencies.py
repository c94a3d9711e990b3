"""
FastAPI dependencies for authentication.

Every protected endpoint declares get_current_user as a parameter. FastAPI
calls it before the route handler; if the bearer token is missing, expired
or tampered with, the request is rejected with 401 and the handler never
runs.

The returned User's id is the owner id that scopes every ledger and journal
query in the services.
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.database import get_db
from expense_api.models.user import User
from expense_api.security import decode_access_token
from expense_api.services import auth_service


# Looks for the "Authorization: Bearer <token>" header. tokenUrl is only
# used by the Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/signin")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the JWT token, then return the corresponding User.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist
                           or is deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        user_id_str: str | None = payload.get("sub")
        if user_id_str is None:
            raise credentials_exception
        user_id = uuid.UUID(user_id_str)
    except (JWTError, ValueError):
        raise credentials_exception

    user = await auth_service.get_user(db, user_id)

    if user is None or not user.is_active:
        raise credentials_exception

    return user
