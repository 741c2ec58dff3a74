"""Payment model with affiliate commission tracking.

A payment captured through an affiliate link carries a commission that is
held for a fixed period (see COMMISSION_HOLD_DAYS) before it is released
into the link owner's spendable balance:

    commission_status: PENDING  --(hold expired, payment still captured)-->  RELEASED
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Integer, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnelhub.database import Base

if TYPE_CHECKING:
    from funnelhub.models.affiliate_link import AffiliateLink


# ==================== ENUMS (stored as VARCHAR) ====================

class PaymentStatus(str, Enum):
    """Outcome of the payment at the gateway."""
    CAPTURED = "captured"
    REFUNDED = "refunded"
    VOIDED = "voided"
    FAILED = "failed"


class CommissionStatus(str, Enum):
    """Affiliate commission status."""
    PENDING = "PENDING"     # Held in pending balance
    RELEASED = "RELEASED"   # Moved to spendable balance


class Payment(Base):
    """Captured sale, optionally attributed to an affiliate link."""
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    transaction_id: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
        comment="Gateway transaction identifier"
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=PaymentStatus.CAPTURED.value,
        index=True
    )
    buyer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    affiliate_link_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("affiliate_links.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Commission
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0")
    )
    commission_status: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="PENDING while held, RELEASED once spendable"
    )
    commission_held_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    commission_released_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    affiliate_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    affiliate_link: Mapped[Optional["AffiliateLink"]] = relationship(
        "AffiliateLink",
        back_populates="payments"
    )

    __table_args__ = (
        Index('ix_payments_commission_release', 'commission_status', 'commission_held_until'),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, transaction_id={self.transaction_id})>"
