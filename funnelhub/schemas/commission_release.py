"""Pydantic schemas for the commission release job."""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from funnelhub.schemas.base import SnapshotSchema


# ==================== Eligible Payment Snapshot ====================

class AffiliateOwnerSnapshot(SnapshotSchema):
    """Affiliate owner balances as read by the eligibility query."""
    id: int
    email: str
    first_name: str
    last_name: str
    balance: Decimal
    pending_balance: Decimal


class AffiliateLinkSnapshot(SnapshotSchema):
    id: int
    user_id: int
    user: AffiliateOwnerSnapshot


class EligiblePayment(SnapshotSchema):
    """Payment whose commission hold has expired, joined with its owner."""
    id: int
    transaction_id: str
    status: str
    commission_amount: Decimal
    commission_status: str
    commission_held_until: datetime
    affiliate_link: AffiliateLinkSnapshot

    @property
    def affiliate_owner(self) -> AffiliateOwnerSnapshot:
        return self.affiliate_link.user


# ==================== Run Results ====================

class CommissionReleaseResult(BaseModel):
    """Outcome of releasing one payment's commission."""
    payment_id: int
    transaction_id: str
    affiliate_owner_id: int
    commission_amount: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    previous_pending_balance: Decimal
    new_pending_balance: Decimal
    released_at: datetime


class CommissionReleaseFailure(BaseModel):
    """A payment the run could not release; it stays PENDING for the next run."""
    payment_id: int
    transaction_id: str
    error_code: str
    error: str
    stack: Optional[str] = None


class CommissionReleaseSummary(BaseModel):
    """Result of one commission release run."""
    success: bool
    total_eligible: int = 0
    total_released: int = 0
    total_failed: int = 0
    total_amount: Decimal = Decimal("0")
    released_payments: List[CommissionReleaseResult] = Field(default_factory=list)
    failed_payments: List[CommissionReleaseFailure] = Field(default_factory=list)
    notifications_sent: int = 0
    notifications_failed: int = 0
    started_at: datetime
    execution_time_ms: int = 0


# ==================== Notifications ====================

class CommissionReleasedEmailData(BaseModel):
    """One consolidated notification per affiliate per run."""
    affiliate_owner_email: str
    affiliate_owner_name: str
    commission_amount: Decimal
    new_available_balance: Decimal
    number_of_commissions: int
    payment_ids: List[int]


class NotificationDispatchReport(BaseModel):
    sent: int = 0
    failed: int = 0
    skipped: int = 0
