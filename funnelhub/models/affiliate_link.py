"""Affiliate link model."""
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnelhub.database import Base

if TYPE_CHECKING:
    from funnelhub.models.user import User
    from funnelhub.models.payment import Payment


class AffiliateLink(Base):
    """Referral link that attributes a sale to the user who owns it."""
    __tablename__ = "affiliate_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    token: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    item_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="BUSINESS",
        comment="What the link sells, e.g. BUSINESS, FUNNEL, ADDON"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="affiliate_links")
    payments: Mapped[List["Payment"]] = relationship("Payment", back_populates="affiliate_link")

    def __repr__(self) -> str:
        return f"<AffiliateLink(id={self.id}, token={self.token})>"
