"""
Pydantic schemas for Transaction endpoints.

All monetary amounts are in integer cents (e.g., $10.50 = 1050).
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from expense_api.models.transaction import MAX_AMOUNT_CENTS, TransactionType


class TransactionCreateRequest(BaseModel):
    """Request body for POST /transactions."""
    account_id: uuid.UUID
    type: TransactionType
    amount_cents: int = Field(
        gt=0,
        le=MAX_AMOUNT_CENTS,
        description="Amount in cents, positive and at most 100,000,000,000 ($1 billion)",
    )
    category: str = Field(min_length=1, max_length=50)
    description: str | None = Field(None, max_length=255)
    date: datetime | None = Field(None, description="When it happened; defaults to now")


class TransactionUpdateRequest(BaseModel):
    """
    Request body for PUT /transactions/{id}.

    Omitted fields are unchanged. `type` is accepted only so a client that
    echoes the whole record back still works; a different value is rejected.
    """
    type: TransactionType | None = None
    amount_cents: int | None = Field(None, gt=0, le=MAX_AMOUNT_CENTS)
    category: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=255)
    date: datetime | None = None


class TransactionResponse(BaseModel):
    """Public representation of a transaction."""
    id: uuid.UUID
    account_id: uuid.UUID
    type: str
    amount_cents: int
    category: str
    description: str | None
    date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionMutationResponse(BaseModel):
    """Response for create/update: the transaction and the account's new balance."""
    transaction: TransactionResponse
    updated_balance_cents: int


class TransactionDeleteResponse(BaseModel):
    """Response for DELETE /transactions/{id}."""
    detail: str = "Transaction deleted successfully"
    updated_balance_cents: int


class SummaryResponse(BaseModel):
    """Income/expense totals recomputed from the filtered transactions."""
    total_income_cents: int
    total_expense_cents: int
    net_balance_cents: int
    transaction_count: int


class CategoriesResponse(BaseModel):
    """Suggested categories per transaction type (not enforced)."""
    income: list[str]
    expense: list[str]
