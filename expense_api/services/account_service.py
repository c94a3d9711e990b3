"""
Account service — the account ledger store.

This module handles:
  - Account creation, rename/retype, and deletion
  - Account retrieval (single or list, scoped to an owner)
  - apply_delta(): the ONLY code path that changes an account's
    balance/income/expense aggregates
  - Balance verification (cached vs. computed from the journal)

Ownership enforcement:
  Every function takes an `owner_id`, always the authenticated user's id
  as resolved by the dependency layer. Queries filter on it directly, so an
  account owned by someone else is indistinguishable from one that doesn't
  exist: both raise AccountNotFoundError.

Atomic aggregate updates:
  apply_delta() expresses the change as `balance_cents = balance_cents + :d`
  in a single UPDATE. Two concurrent requests against the same account
  therefore can't both read a stale balance and overwrite each other; the
  database serializes the increments.
"""

import logging
import uuid

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from expense_api.exceptions import (
    AccountHasTransactionsError,
    AccountNotFoundError,
    ValidationError,
)
from expense_api.models.account import Account, AccountType
from expense_api.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)


def _clean_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("Please provide account name and type")
    return name.strip()


def _clean_type(account_type: str | None) -> str:
    if not account_type:
        raise ValidationError("Please provide account name and type")
    try:
        return AccountType(account_type).value
    except ValueError:
        allowed = ", ".join(t.value for t in AccountType)
        raise ValidationError(
            f"Invalid account type '{account_type}'. Must be one of: {allowed}"
        )


async def create_account(
    db: AsyncSession,
    owner_id: uuid.UUID,
    name: str | None,
    account_type: str | None,
) -> Account:
    """
    Create a new account with zeroed aggregates.

    Args:
        db: Database session.
        owner_id: The authenticated user's id.
        name: Display name (trimmed; must not be blank).
        account_type: One of the AccountType values.

    Returns:
        The newly created Account instance.

    Raises:
        ValidationError: If name or type is missing, or type is unknown.
    """
    account = Account(
        owner_id=owner_id,
        name=_clean_name(name),
        account_type=_clean_type(account_type),
        balance_cents=0,
        income_cents=0,
        expense_cents=0,
    )
    db.add(account)
    await db.flush()
    logger.info("Created %s account %s for owner %s", account.account_type, account.id, owner_id)
    return account


async def get_accounts(
    db: AsyncSession,
    owner_id: uuid.UUID,
) -> list[Account]:
    """List all accounts belonging to the owner, oldest first."""
    result = await db.execute(
        select(Account)
        .where(Account.owner_id == owner_id)
        .order_by(Account.created_at.asc())
    )
    return list(result.scalars().all())


async def get_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Account:
    """
    Get a single account owned by the caller.

    Raises:
        AccountNotFoundError: If the account doesn't exist or belongs to
                              someone else.
    """
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .where(Account.owner_id == owner_id)
    )
    account = result.scalar_one_or_none()

    if account is None:
        raise AccountNotFoundError(account_id)

    return account


async def update_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
    name: str | None = None,
    account_type: str | None = None,
) -> Account:
    """
    Rename and/or retype an account.

    Only the provided fields change. The aggregates are never touched here;
    they belong to apply_delta().

    Raises:
        AccountNotFoundError: If the account isn't owned by the caller.
        ValidationError: If the new name is blank or the type is unknown.
    """
    account = await get_account(db, account_id, owner_id)

    if name is not None:
        account.name = _clean_name(name)
    if account_type is not None:
        account.account_type = _clean_type(account_type)

    await db.flush()
    return account


async def delete_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> None:
    """
    Delete an account that has no transactions.

    Raises:
        AccountNotFoundError: If the account isn't owned by the caller.
        AccountHasTransactionsError: If any transaction references it.
    """
    account = await get_account(db, account_id, owner_id)

    has_transactions = await db.scalar(
        select(Transaction.id).where(Transaction.account_id == account_id).limit(1)
    )
    if has_transactions is not None:
        raise AccountHasTransactionsError(account_id)

    await db.delete(account)
    await db.flush()
    logger.info("Deleted account %s for owner %s", account_id, owner_id)


async def apply_delta(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
    balance_delta: int,
    income_delta: int,
    expense_delta: int,
) -> Account:
    """
    Add signed deltas to an account's aggregates and return the updated record.

    The arithmetic happens inside the database in one UPDATE statement, so
    the change is atomic with respect to other requests. The account is then
    re-read with populate_existing so any instance already in the session
    reflects the stored values.

    Raises:
        AccountNotFoundError: If no account with this id is owned by the caller.
        sqlalchemy.exc.IntegrityError: If the result would violate the
            non-negative income/expense constraints. Callers run this inside
            a journal unit, which converts it to ConsistencyError.
    """
    result = await db.execute(
        update(Account)
        .where(Account.id == account_id)
        .where(Account.owner_id == owner_id)
        .values(
            balance_cents=Account.balance_cents + balance_delta,
            income_cents=Account.income_cents + income_delta,
            expense_cents=Account.expense_cents + expense_delta,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise AccountNotFoundError(account_id)

    refreshed = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .execution_options(populate_existing=True)
    )
    account = refreshed.scalar_one()
    logger.info(
        "Applied delta to account %s: balance %+d, income %+d, expense %+d -> balance %d",
        account_id, balance_delta, income_delta, expense_delta, account.balance_cents,
    )
    return account


async def get_balance(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> dict:
    """
    Get the account's cached aggregates alongside the balance computed from
    its transactions.

    A `match` of False means the cached aggregates have drifted from the
    journal, which is a data integrity issue.

    Returns:
        Dict matching BalanceResponse.
    """
    account = await get_account(db, account_id, owner_id)
    computed_balance_cents = await _compute_balance_from_transactions(db, account_id)

    return {
        "account_id": account.id,
        "balance_cents": account.balance_cents,
        "income_cents": account.income_cents,
        "expense_cents": account.expense_cents,
        "computed_balance_cents": computed_balance_cents,
        "match": account.balance_cents == computed_balance_cents,
    }


async def _compute_balance_from_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> int:
    """Sum income minus expense over the account's journal."""
    income_result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount_cents), 0))
        .where(Transaction.account_id == account_id)
        .where(Transaction.type == TransactionType.INCOME.value)
    )
    total_income = income_result.scalar()

    expense_result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount_cents), 0))
        .where(Transaction.account_id == account_id)
        .where(Transaction.type == TransactionType.EXPENSE.value)
    )
    total_expense = expense_result.scalar()

    return total_income - total_expense
