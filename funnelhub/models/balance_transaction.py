"""Balance transaction (ledger entry) model.

One row per balance-affecting event. A held commission is written once as
COMMISSION_HOLD and later transitioned in place to COMMISSION_RELEASE, so
the hold and its release share a single auditable entry.
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnelhub.database import Base

if TYPE_CHECKING:
    from funnelhub.models.user import User


class BalanceTransactionType(str, Enum):
    """Balance transaction type."""
    COMMISSION_HOLD = "COMMISSION_HOLD"         # Commission earned, held in pending balance
    COMMISSION_RELEASE = "COMMISSION_RELEASE"   # Hold elapsed, moved to spendable balance
    PAYOUT = "PAYOUT"                           # Withdrawal to the affiliate
    PAYOUT_REFUND = "PAYOUT_REFUND"             # Failed payout returned to balance
    ADJUSTMENT = "ADJUSTMENT"                   # Manual correction


class ReferenceType(str, Enum):
    """Record a balance transaction points back to."""
    PAYMENT = "Payment"
    PAYOUT = "Payout"


class BalanceTransaction(Base):
    """Ledger entry for one balance-affecting event."""
    __tablename__ = "balance_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    balance_before: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Spendable balance before the event"
    )
    balance_after: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Spendable balance after the event"
    )

    # Polymorphic pointer to the originating record
    reference_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    released_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="balance_transactions")

    __table_args__ = (
        Index(
            'ix_balance_transactions_reference',
            'user_id', 'type', 'reference_type', 'reference_id'
        ),
    )

    def __repr__(self) -> str:
        return f"<BalanceTransaction(id={self.id}, type={self.type}, amount={self.amount})>"
