"""
Commission Hold Service

Records an affiliate commission at sale time. The commission is not
spendable yet: it is added to the link owner's pending balance and a
COMMISSION_HOLD ledger entry is written. The commission release job moves
it to the spendable balance once the hold period has elapsed.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from funnelhub.models.affiliate_link import AffiliateLink
from funnelhub.models.balance_transaction import (
    BalanceTransaction,
    BalanceTransactionType,
    ReferenceType,
)
from funnelhub.models.payment import Payment, CommissionStatus
from funnelhub.models.user import User

logger = logging.getLogger(__name__)


class CommissionHoldService:
    """Places affiliate commissions on hold. Caller owns the transaction."""

    def __init__(self, db: AsyncSession, hold_days: int = 30):
        self.db = db
        self.hold_days = hold_days

    async def hold_commission(
        self,
        payment: Payment,
        commission_amount: Decimal,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[BalanceTransaction]:
        """
        Hold the commission for a captured payment.

        Flow:
        1. Set commission fields on the payment (PENDING, held until now + hold_days)
        2. Increment the link owner's pending_balance and total_sales
        3. Write the COMMISSION_HOLD ledger entry (spendable balance unchanged)

        Returns the ledger entry, or None when there is no commission to hold.
        """
        if payment.affiliate_link_id is None:
            raise ValueError(f"Payment {payment.id} has no affiliate link")
        if commission_amount < 0:
            raise ValueError("Commission amount cannot be negative")

        payment.commission_amount = commission_amount
        if commission_amount == 0:
            return None

        now = now or datetime.now(timezone.utc)

        link_result = await self.db.execute(
            select(AffiliateLink).where(AffiliateLink.id == payment.affiliate_link_id)
        )
        link = link_result.scalar_one()

        payment.commission_status = CommissionStatus.PENDING.value
        payment.commission_held_until = now + timedelta(days=self.hold_days)
        payment.affiliate_paid = False

        balance_result = await self.db.execute(
            update(User)
            .where(User.id == link.user_id)
            .values(
                pending_balance=User.pending_balance + commission_amount,
                total_sales=User.total_sales + commission_amount,
            )
            .returning(User.balance, User.pending_balance)
            .execution_options(synchronize_session=False)
        )
        row = balance_result.one()

        await self.db.flush()

        entry = BalanceTransaction(
            user_id=link.user_id,
            type=BalanceTransactionType.COMMISSION_HOLD.value,
            amount=commission_amount,
            balance_before=row.balance,
            balance_after=row.balance,
            reference_type=ReferenceType.PAYMENT.value,
            reference_id=payment.id,
            notes=notes or f"Commission held for {self.hold_days} days",
        )
        self.db.add(entry)
        await self.db.flush()

        logger.info(
            f"Held commission {commission_amount} for payment {payment.id} "
            f"(user {link.user_id}, pending balance now {row.pending_balance}, "
            f"release after {payment.commission_held_until.isoformat()})"
        )
        return entry
