"""User (workspace owner) model.

Only the fields the affiliate ledger relies on live here: contact details
for notifications and the two balance columns. `pending_balance` holds
commissions still inside their hold period; `balance` is spendable.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import String, DateTime, Integer, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnelhub.database import Base

if TYPE_CHECKING:
    from funnelhub.models.affiliate_link import AffiliateLink
    from funnelhub.models.balance_transaction import BalanceTransaction


class User(Base):
    """Account that owns affiliate links and earns commissions."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # Balances
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Spendable balance, available for payout"
    )
    pending_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Commissions on hold, not yet spendable"
    )
    total_sales: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Lifetime commission earned through affiliate links"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    affiliate_links: Mapped[List["AffiliateLink"]] = relationship(
        "AffiliateLink",
        back_populates="user"
    )
    balance_transactions: Mapped[List["BalanceTransaction"]] = relationship(
        "BalanceTransaction",
        back_populates="user"
    )

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),
        CheckConstraint("pending_balance >= 0", name="ck_users_pending_balance_non_negative"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
