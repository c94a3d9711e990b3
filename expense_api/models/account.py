"""
Account model — a named bucket of money owned by a User.

Each account has:
  - A user-chosen name and a type (Savings, Current, Investment,
    Credit Card, Cash)
  - Three cached aggregates, all in integer cents:
      balance_cents  — income minus expense, may go negative
      income_cents   — cumulative income recorded against the account
      expense_cents  — cumulative expense recorded against the account

Aggregate management:
  The aggregates are only ever changed by account_service.apply_delta(),
  which issues a single UPDATE adding signed deltas in the database. The
  transaction journal is the source of truth; after every successful
  mutation the aggregates equal the sums over the account's transactions.

  CHECK constraints keep income and expense non-negative. A reversal that
  would drive either below zero means the cache has drifted from the
  journal, and the database refuses the write instead of hiding it.

Why integer cents?
  Repeated increments and decrements of binary floats accumulate error
  (0.1 + 0.2 != 0.3). Integer cents keep every sum exact; clients divide
  by 100 for display.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_api.database import Base


class AccountType(str, enum.Enum):
    """
    The fixed set of account types.

    Inherits from str so the enum value serializes naturally to JSON
    and can be stored as a simple string in the database.
    """
    SAVINGS = "Savings"
    CURRENT = "Current"
    INVESTMENT = "Investment"
    CREDIT_CARD = "Credit Card"
    CASH = "Cash"


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint("income_cents >= 0", name="ck_accounts_non_negative_income"),
        CheckConstraint("expense_cents >= 0", name="ck_accounts_non_negative_expense"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # One of the AccountType values
    account_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    income_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    expense_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    owner: Mapped["User"] = relationship(
        back_populates="accounts",
    )
