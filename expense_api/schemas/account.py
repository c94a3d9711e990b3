"""
Pydantic schemas for Account endpoints.

These schemas define the API contract for account creation, editing,
retrieval, and balance checking. All monetary amounts are integer cents.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from expense_api.models.account import AccountType


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType = Field(description="Savings, Current, Investment, Credit Card or Cash")


class AccountUpdateRequest(BaseModel):
    """Request body for PUT /accounts/{id} (rename and/or retype)."""
    name: str | None = Field(None, min_length=1, max_length=100)
    account_type: AccountType | None = None


class AccountResponse(BaseModel):
    """Public representation of an account and its cached aggregates."""
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    account_type: str
    balance_cents: int
    income_cents: int
    expense_cents: int
    created_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """
    Balance check response — cached aggregates plus the journal-derived balance.

    `match` is False when the cached balance disagrees with the sum of the
    account's transactions, which indicates a data integrity issue.
    """
    account_id: uuid.UUID
    balance_cents: int
    income_cents: int
    expense_cents: int
    computed_balance_cents: int
    match: bool
