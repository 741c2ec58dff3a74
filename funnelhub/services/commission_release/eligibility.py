"""Eligible payment selection for the commission release job."""
import logging
from datetime import datetime
from typing import List

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from funnelhub.models.affiliate_link import AffiliateLink
from funnelhub.models.payment import Payment, PaymentStatus, CommissionStatus
from funnelhub.schemas.commission_release import EligiblePayment
from funnelhub.services.commission_release.errors import EligibilityQueryFailed

logger = logging.getLogger(__name__)


class EligibilitySelector:
    """Read-only query for payments whose commission hold has expired."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_eligible_payments(self, now: datetime) -> List[EligiblePayment]:
        """
        Find all payments eligible for commission release.

        Criteria:
        - commission_status = PENDING (still on hold)
        - commission_held_until < now (hold period elapsed)
        - commission_amount > 0
        - status = captured (not refunded, voided or failed)

        Oldest hold expiry first, so long-waiting affiliates go first when a
        previous run left items behind. Each result carries the affiliate
        link and owner balances read in the same query.

        Raises:
            EligibilityQueryFailed: the datastore could not be queried
        """
        query = (
            select(Payment)
            .options(joinedload(Payment.affiliate_link).joinedload(AffiliateLink.user))
            .where(
                and_(
                    Payment.commission_status == CommissionStatus.PENDING.value,
                    Payment.commission_held_until < now,
                    Payment.commission_amount > 0,
                    Payment.status == PaymentStatus.CAPTURED.value,
                    Payment.affiliate_link_id.is_not(None),
                )
            )
            .order_by(Payment.commission_held_until.asc(), Payment.id.asc())
        )

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                payments = result.unique().scalars().all()
                return [EligiblePayment.model_validate(p) for p in payments]
        except SQLAlchemyError as e:
            raise EligibilityQueryFailed(e) from e
