"""
Accounts router — account management endpoints.

All endpoints require a JWT and are scoped to the authenticated user:

    GET    /accounts                       — List own accounts
    POST   /accounts                       — Create an account
    GET    /accounts/{account_id}          — Get account details
    PUT    /accounts/{account_id}          — Rename and/or retype
    DELETE /accounts/{account_id}          — Delete (only without transactions)
    GET    /accounts/{account_id}/balance  — Cached vs. computed balance

An account owned by another user responds exactly like a missing one (404).
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.database import get_db
from expense_api.dependencies import get_current_user
from expense_api.models.user import User
from expense_api.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    BalanceResponse,
)
from expense_api.services import account_service

router = APIRouter()


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List your accounts",
)
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_accounts(db, user.id)


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    request: AccountCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account with zero balance, income and expense.

    - **name**: Display name, e.g. "Everyday wallet"
    - **account_type**: Savings, Current, Investment, Credit Card or Cash
    """
    return await account_service.create_account(
        db=db,
        owner_id=user.id,
        name=request.name,
        account_type=request.account_type.value,
    )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_account(db, account_id, user.id)


@router.put(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Rename or retype an account",
)
async def update_account(
    account_id: uuid.UUID,
    request: AccountUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Change the account's name and/or type. Balances are never edited
    directly; they follow the account's transactions.
    """
    return await account_service.update_account(
        db=db,
        account_id=account_id,
        owner_id=user.id,
        name=request.name,
        account_type=request.account_type.value if request.account_type else None,
    )


@router.delete(
    "/{account_id}",
    summary="Delete an account",
)
async def delete_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an account. Fails with 409 while any transaction references it;
    delete its transactions first.
    """
    await account_service.delete_account(db, account_id, user.id)
    return {"detail": "Account deleted successfully"}


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Check account balance",
)
async def get_balance(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the cached aggregates and the balance recomputed from transactions.

    `match` is false if the two disagree, which needs investigation.
    """
    return await account_service.get_balance(db, account_id, user.id)
