"""
Transactions router — the journal endpoints.

All endpoints require a JWT and are scoped to the authenticated user:

    GET    /transactions             — List with filters (newest first)
    POST   /transactions             — Record income or expense
    GET    /transactions/summary     — Totals over the filtered journal
    GET    /transactions/categories  — Suggested categories
    GET    /transactions/{id}        — Get one transaction
    PUT    /transactions/{id}        — Edit amount/category/description/date
    DELETE /transactions/{id}        — Delete and revert its effect

Fixed paths are declared before /{transaction_id} so they aren't captured
by the path parameter.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.database import get_db
from expense_api.dependencies import get_current_user
from expense_api.models.transaction import TransactionType
from expense_api.models.user import User
from expense_api.schemas.transaction import (
    CategoriesResponse,
    SummaryResponse,
    TransactionCreateRequest,
    TransactionDeleteResponse,
    TransactionMutationResponse,
    TransactionResponse,
    TransactionUpdateRequest,
)
from expense_api.services import transaction_service

router = APIRouter()


@router.get(
    "",
    response_model=list[TransactionResponse],
    summary="List transactions",
)
async def list_transactions(
    account_id: uuid.UUID | None = Query(None, description="Only this account"),
    type: TransactionType | None = Query(None, description="income or expense"),
    category: str | None = Query(None),
    start_date: datetime | None = Query(None, description="Inclusive lower bound on date"),
    end_date: datetime | None = Query(None, description="Inclusive upper bound on date"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List your transactions ordered by date, newest first. Filters combine with AND."""
    return await transaction_service.get_transactions(
        db=db,
        owner_id=user.id,
        account_id=account_id,
        type_filter=type.value if type else None,
        category=category,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=TransactionMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record income or expense",
)
async def create_transaction(
    request: TransactionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a transaction and apply it to the account.

    - **income**: adds to balance and income
    - **expense**: subtracts from balance, adds to expense

    All amounts are in **integer cents** (e.g., $10.50 = 1050).
    """
    txn, balance_cents = await transaction_service.create_transaction(
        db=db,
        owner_id=user.id,
        account_id=request.account_id,
        txn_type=request.type.value,
        amount_cents=request.amount_cents,
        category=request.category,
        description=request.description,
        date=request.date,
    )
    return TransactionMutationResponse(
        transaction=TransactionResponse.model_validate(txn),
        updated_balance_cents=balance_cents,
    )


@router.get(
    "/summary",
    response_model=SummaryResponse,
    summary="Income and expense totals",
)
async def get_summary(
    account_id: uuid.UUID | None = Query(None),
    type: TransactionType | None = Query(None),
    category: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Totals recomputed from the matching transactions, independent of the
    cached account balances.
    """
    return await transaction_service.get_summary(
        db=db,
        owner_id=user.id,
        account_id=account_id,
        type_filter=type.value if type else None,
        category=category,
        start_date=start_date,
        end_date=end_date,
    )


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="Suggested categories",
)
async def get_categories(user: User = Depends(get_current_user)):
    return transaction_service.suggested_categories()


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a single transaction",
)
async def get_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.get_transaction(db, transaction_id, user.id)


@router.put(
    "/{transaction_id}",
    response_model=TransactionMutationResponse,
    summary="Edit a transaction",
)
async def update_transaction(
    transaction_id: uuid.UUID,
    request: TransactionUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Edit amount, category, description or date. Changing the amount
    re-derives the account's balance; changing the type is rejected.
    """
    txn, balance_cents = await transaction_service.update_transaction(
        db=db,
        owner_id=user.id,
        transaction_id=transaction_id,
        amount_cents=request.amount_cents,
        category=request.category,
        description=request.description,
        date=request.date,
        txn_type=request.type.value if request.type else None,
    )
    return TransactionMutationResponse(
        transaction=TransactionResponse.model_validate(txn),
        updated_balance_cents=balance_cents,
    )


@router.delete(
    "/{transaction_id}",
    response_model=TransactionDeleteResponse,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a transaction and reverse its effect on the account."""
    balance_cents = await transaction_service.delete_transaction(
        db, user.id, transaction_id
    )
    return TransactionDeleteResponse(updated_balance_cents=balance_cents)
