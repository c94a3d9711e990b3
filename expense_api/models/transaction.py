"""
Transaction model — one income or expense event against one account.

Key fields:
  - type: "income" or "expense" — the direction of money flow
  - amount_cents: Always positive (the direction is implied by the type)
    and at most MAX_AMOUNT_CENTS
  - category: Free-form label; the client offers a suggested list
    (see INCOME_CATEGORIES / EXPENSE_CATEGORIES) but any string is stored
  - date: When the event happened, chosen by the user. Defaults to the
    creation time. Listing, filtering and summaries all key off this field,
    not created_at.

Concurrent edits:
  The `version` column is a SQLAlchemy version counter. An update or
  delete that lost a race against another request matches zero rows and
  fails instead of reverting the same amount twice.

Why amount_cents is always positive:
  A positive amount with a separate type field makes the direction
  explicit. The signed effect on the account is derived in one place
  (transaction_service.Delta).
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expense_api.database import Base


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


INCOME_CATEGORIES = [
    "Salary", "Investment", "Interest", "Gift", "Bonus", "Refund", "Other",
]

EXPENSE_CATEGORIES = [
    "Food", "Transport", "Housing", "Utilities", "Insurance", "Healthcare",
    "Shopping", "Entertainment", "Travel", "Education", "Personal Care",
    "Debt", "Other",
]

# Largest single amount accepted: $1,000,000,000.00. Running totals stay far
# inside BIGINT range even after millions of maximal transactions.
MAX_AMOUNT_CENTS = 100_000_000_000


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
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

    # No ON DELETE cascade: account deletion is refused while transactions exist
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    # "income" or "expense"
    type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    amount_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Indexed for date-range filtering and summaries
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    # Optimistic concurrency counter. The ORM adds "AND version = :read"
    # to every UPDATE/DELETE of this row and raises StaleDataError when the
    # row changed (or vanished) since it was read.
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
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

    __mapper_args__ = {"version_id_col": version}
