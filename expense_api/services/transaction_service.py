"""
Transaction service — the transaction journal and its ledger bookkeeping.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Creating, updating and deleting income/expense transactions
  - Keeping each account's balance/income/expense consistent with them
  - Listing and summarizing the journal with filters

Deltas:
  Every mutation is expressed as a Delta (balance, income, expense):

      income  of a  ->  (+a, +a,  0)
      expense of a  ->  (-a,  0, +a)

  Create applies the transaction's delta, delete applies its negation, and
  an amount update applies (new delta - old delta). All three go through
  account_service.apply_delta(), the single place the aggregates change.

Atomicity:
  The journal row write and the account update run inside journal_unit().
  Both are flushed in the request's database transaction; if either
  fails, the session is rolled back and ConsistencyError is raised, so the
  journal and the ledger never diverge. get_db() commits only after the
  whole request succeeds.

Concurrency:
  Aggregates are incremented in SQL (see apply_delta), so concurrent
  creates never lose updates. Updates and deletes lock the transaction row
  (with_for_update(), a no-op on SQLite) and the ORM's version counter
  makes the journal write fail if the row changed since it was read.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.exceptions import (
    ConsistencyError,
    ExpenseAPIError,
    TransactionNotFoundError,
    ValidationError,
)
from expense_api.models.account import Account
from expense_api.models.transaction import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    MAX_AMOUNT_CENTS,
    Transaction,
    TransactionType,
)
from expense_api.services import account_service

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS_MESSAGE = "Please provide account, type, amount, and category"


@dataclass(frozen=True)
class Delta:
    """Signed change to an account's balance, income and expense (in cents)."""

    balance: int = 0
    income: int = 0
    expense: int = 0

    @classmethod
    def for_transaction(cls, txn_type: str, amount_cents: int) -> "Delta":
        """The contribution a transaction makes to its account."""
        if txn_type == TransactionType.INCOME.value:
            return cls(balance=amount_cents, income=amount_cents)
        return cls(balance=-amount_cents, expense=amount_cents)

    def __neg__(self) -> "Delta":
        return Delta(-self.balance, -self.income, -self.expense)

    def __add__(self, other: "Delta") -> "Delta":
        return Delta(
            self.balance + other.balance,
            self.income + other.income,
            self.expense + other.expense,
        )

    def __bool__(self) -> bool:
        return bool(self.balance or self.income or self.expense)


@asynccontextmanager
async def journal_unit(db: AsyncSession, operation: str):
    """
    Run a journal write and its paired account update as one unit.

    Everything inside the block is flushed before leaving it. A database
    error (constraint violation, stale version, lost connection) rolls the
    session back and surfaces as ConsistencyError. Domain errors raised in
    the block also roll back, then propagate unchanged.
    """
    try:
        yield
        await db.flush()
    except ExpenseAPIError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception(
            "Journal %s failed, session rolled back: %s",
            operation, getattr(exc, "orig", None) or exc,
        )
        raise ConsistencyError(
            operation, "the database rejected the change and nothing was saved"
        ) from exc


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def _clean_type(txn_type: str | None) -> str:
    if not txn_type:
        raise ValidationError(_REQUIRED_FIELDS_MESSAGE)
    try:
        return TransactionType(txn_type).value
    except ValueError:
        raise ValidationError(
            f"Invalid transaction type '{txn_type}'. Must be 'income' or 'expense'"
        )


def _clean_amount(amount_cents: int | None) -> int:
    if amount_cents is None:
        raise ValidationError(_REQUIRED_FIELDS_MESSAGE)
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise ValidationError("Amount must be a whole number of cents")
    if amount_cents <= 0:
        raise ValidationError("Amount must be greater than zero")
    if amount_cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"Amount must not exceed {MAX_AMOUNT_CENTS} cents")
    return amount_cents


def _clean_category(category: str | None) -> str:
    if category is None or not category.strip():
        raise ValidationError(_REQUIRED_FIELDS_MESSAGE)
    return category.strip()


def _as_utc(value: datetime) -> datetime:
    """Normalize to UTC; naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def _apply(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
    delta: Delta,
) -> Account:
    return await account_service.apply_delta(
        db,
        account_id,
        owner_id,
        balance_delta=delta.balance,
        income_delta=delta.income,
        expense_delta=delta.expense,
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def create_transaction(
    db: AsyncSession,
    owner_id: uuid.UUID,
    account_id: uuid.UUID | None,
    txn_type: str | None,
    amount_cents: int | None,
    category: str | None,
    description: str | None = None,
    date: datetime | None = None,
) -> tuple[Transaction, int]:
    """
    Record an income or expense and apply it to the account.

    Args:
        db: Database session.
        owner_id: The authenticated user's id.
        account_id: The account the transaction belongs to.
        txn_type: "income" or "expense".
        amount_cents: Positive integer amount in cents.
        category: Free-form category label (must not be blank).
        description: Optional memo.
        date: When it happened. Defaults to now.

    Returns:
        Tuple of (created Transaction, account balance after the change).

    Raises:
        ValidationError: If a required field is missing or invalid.
        AccountNotFoundError: If the account isn't owned by the caller.
        ConsistencyError: If the paired write failed (nothing persisted).
    """
    if account_id is None:
        raise ValidationError(_REQUIRED_FIELDS_MESSAGE)
    txn_type = _clean_type(txn_type)
    amount_cents = _clean_amount(amount_cents)
    category = _clean_category(category)

    # Ownership check up front so a foreign account never gets a journal row
    await account_service.get_account(db, account_id, owner_id)

    txn = Transaction(
        owner_id=owner_id,
        account_id=account_id,
        type=txn_type,
        amount_cents=amount_cents,
        category=category,
        description=description or None,
        date=_as_utc(date) if date else datetime.now(timezone.utc),
    )

    async with journal_unit(db, "create"):
        db.add(txn)
        await db.flush()
        account = await _apply(
            db, account_id, owner_id, Delta.for_transaction(txn_type, amount_cents)
        )

    logger.info(
        "Recorded %s of %d cents on account %s (transaction %s)",
        txn_type, amount_cents, account_id, txn.id,
    )
    return txn, account.balance_cents


async def update_transaction(
    db: AsyncSession,
    owner_id: uuid.UUID,
    transaction_id: uuid.UUID,
    amount_cents: int | None = None,
    category: str | None = None,
    description: str | None = None,
    date: datetime | None = None,
    txn_type: str | None = None,
) -> tuple[Transaction, int]:
    """
    Edit a transaction, re-deriving the account aggregates if the amount changes.

    The original contribution is reversed and the new amount's contribution
    is applied with the (unchanged) type; the net delta goes to the account
    in one atomic UPDATE. Category, description and date changes never
    touch the aggregates. Fields left as None are unchanged; an empty
    description clears it.

    Changing the type (income <-> expense) is not supported. Passing a
    txn_type that differs from the stored one raises ValidationError.

    Returns:
        Tuple of (updated Transaction, account balance after the change).

    Raises:
        TransactionNotFoundError: If the transaction isn't owned by the caller.
        AccountNotFoundError: If its account is no longer owned by the caller.
        ValidationError: On a type change, non-positive amount or blank category.
        ConsistencyError: If the paired write failed (nothing persisted).
    """
    txn = await _get_owned_transaction(db, transaction_id, owner_id, lock_for="update")

    if txn_type is not None and txn_type != txn.type:
        raise ValidationError(
            "Changing a transaction's type is not supported. "
            "Delete it and record a new transaction instead."
        )
    if amount_cents is not None:
        amount_cents = _clean_amount(amount_cents)
    if category is not None:
        category = _clean_category(category)

    delta = Delta()
    if amount_cents is not None and amount_cents != txn.amount_cents:
        delta = (
            -Delta.for_transaction(txn.type, txn.amount_cents)
            + Delta.for_transaction(txn.type, amount_cents)
        )

    async with journal_unit(db, "update"):
        if amount_cents is not None:
            txn.amount_cents = amount_cents
        if category is not None:
            txn.category = category
        if description is not None:
            txn.description = description or None
        if date is not None:
            txn.date = _as_utc(date)
        await db.flush()

        if delta:
            account = await _apply(db, txn.account_id, owner_id, delta)
        else:
            account = await account_service.get_account(db, txn.account_id, owner_id)

    await db.refresh(txn)
    logger.info("Updated transaction %s (balance delta %+d)", txn.id, delta.balance)
    return txn, account.balance_cents


async def delete_transaction(
    db: AsyncSession,
    owner_id: uuid.UUID,
    transaction_id: uuid.UUID,
) -> int:
    """
    Remove a transaction and reverse its effect on the account.

    Returns:
        The account balance after the reversal.

    Raises:
        TransactionNotFoundError: If the transaction isn't owned by the caller.
        ConsistencyError: If the paired write failed (nothing persisted).
    """
    txn = await _get_owned_transaction(db, transaction_id, owner_id, lock_for="delete")
    account_id = txn.account_id
    reversal = -Delta.for_transaction(txn.type, txn.amount_cents)

    async with journal_unit(db, "delete"):
        await db.delete(txn)
        await db.flush()
        account = await _apply(db, account_id, owner_id, reversal)

    logger.info(
        "Deleted transaction %s, reverted %+d cents on account %s",
        transaction_id, reversal.balance, account_id,
    )
    return account.balance_cents


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def _get_owned_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    owner_id: uuid.UUID,
    lock_for: str | None = None,
) -> Transaction:
    """
    Load a transaction owned by the caller.

    With lock_for (the journal operation about to run) the row is selected
    FOR UPDATE. The ORM then also compares the stored version with the copy
    already in the session; a mismatch means another request changed the
    row after this session read it, and surfaces as ConsistencyError.
    """
    query = (
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .where(Transaction.owner_id == owner_id)
    )
    if lock_for:
        query = query.with_for_update()  # No-op on SQLite, locks row on PostgreSQL

    try:
        result = await db.execute(query)
        txn = result.scalar_one_or_none()
    except StaleDataError as exc:
        await db.rollback()
        logger.warning("Transaction %s changed since it was read: %s", transaction_id, exc)
        raise ConsistencyError(
            lock_for or "read", "the transaction was changed by another request"
        ) from exc

    if txn is None:
        raise TransactionNotFoundError(transaction_id)
    return txn


async def get_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Transaction:
    """
    Get a single transaction owned by the caller.

    Raises:
        TransactionNotFoundError: If it doesn't exist or belongs to someone else.
    """
    return await _get_owned_transaction(db, transaction_id, owner_id)


def _filtered(
    query,
    owner_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
    type_filter: str | None = None,
    category: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """Apply the owner scope and the optional filters (a conjunction)."""
    query = query.where(Transaction.owner_id == owner_id)

    if account_id:
        query = query.where(Transaction.account_id == account_id)
    if type_filter:
        query = query.where(Transaction.type == _clean_type(type_filter))
    if category:
        query = query.where(Transaction.category == category)
    if start_date:
        query = query.where(Transaction.date >= _as_utc(start_date))
    if end_date:
        query = query.where(Transaction.date <= _as_utc(end_date))

    return query


async def get_transactions(
    db: AsyncSession,
    owner_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
    type_filter: str | None = None,
    category: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Transaction]:
    """
    List the owner's transactions, newest first by transaction date.

    All filters are optional and combined with AND. The date range is
    inclusive on both ends.

    Raises:
        ValidationError: If start_date is after end_date or the type is unknown.
    """
    if start_date and end_date and _as_utc(start_date) > _as_utc(end_date):
        raise ValidationError("start_date must not be after end_date")

    query = _filtered(
        select(Transaction),
        owner_id,
        account_id=account_id,
        type_filter=type_filter,
        category=category,
        start_date=start_date,
        end_date=end_date,
    )
    query = (
        query
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_summary(
    db: AsyncSession,
    owner_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
    type_filter: str | None = None,
    category: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> dict:
    """
    Aggregate income and expense over the filtered journal.

    This is computed from the transactions themselves and never reads an
    account's cached aggregates, so it doubles as an independent check on
    the ledger.

    Returns:
        Dict matching SummaryResponse.
    """
    if start_date and end_date and _as_utc(start_date) > _as_utc(end_date):
        raise ValidationError("start_date must not be after end_date")

    query = _filtered(
        select(
            Transaction.type,
            func.coalesce(func.sum(Transaction.amount_cents), 0),
            func.count(Transaction.id),
        ),
        owner_id,
        account_id=account_id,
        type_filter=type_filter,
        category=category,
        start_date=start_date,
        end_date=end_date,
    ).group_by(Transaction.type)

    result = await db.execute(query)
    totals = {TransactionType.INCOME.value: 0, TransactionType.EXPENSE.value: 0}
    count = 0
    for txn_type, total, type_count in result.all():
        totals[txn_type] = total
        count += type_count

    total_income = totals[TransactionType.INCOME.value]
    total_expense = totals[TransactionType.EXPENSE.value]
    return {
        "total_income_cents": total_income,
        "total_expense_cents": total_expense,
        "net_balance_cents": total_income - total_expense,
        "transaction_count": count,
    }


def suggested_categories() -> dict:
    """Category suggestions offered by the client's income/expense pickers."""
    return {
        "income": list(INCOME_CATEGORIES),
        "expense": list(EXPENSE_CATEGORIES),
    }
