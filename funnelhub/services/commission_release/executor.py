"""
Release of a single held commission.

Everything for one payment happens in one database transaction:

1. Payment: PENDING -> RELEASED, commission_released_at, affiliate_paid
2. User: pending_balance -= amount, balance += amount (in SQL, not from the snapshot)
3. BalanceTransaction: COMMISSION_HOLD -> COMMISSION_RELEASE in place

If any step fails the transaction rolls back and the payment stays PENDING,
so the next run picks it up again.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update, and_
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnelhub.models.balance_transaction import (
    BalanceTransaction,
    BalanceTransactionType,
    ReferenceType,
)
from funnelhub.models.payment import Payment, CommissionStatus
from funnelhub.models.user import User
from funnelhub.schemas.commission_release import (
    EligiblePayment,
    CommissionReleaseResult,
)
from funnelhub.services.commission_release.errors import (
    BalanceInvariantViolated,
    LedgerEntryMissing,
    TransactionConflict,
)
from funnelhub.services.commission_release.ledger_state import release_hold_entry

logger = logging.getLogger(__name__)


class ReleaseExecutor:
    """Moves one payment's commission from pending to spendable balance."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hold_days: int = 30,
    ):
        self.session_factory = session_factory
        self.hold_days = hold_days

    async def release(self, payment: EligiblePayment, now: datetime) -> CommissionReleaseResult:
        """
        Release the commission for one eligible payment.

        Raises:
            TransactionConflict: payment no longer PENDING, or the datastore
                rejected the transaction
            LedgerEntryMissing: no COMMISSION_HOLD entry for the payment
            BalanceInvariantViolated: a balance would go negative
            InvalidLedgerTransition: the hold entry is not in a releasable state
        """
        owner = payment.affiliate_owner

        logger.info(
            f"Releasing commission {payment.commission_amount} for payment {payment.id} "
            f"to user {owner.id}"
        )

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await self._release_in_transaction(session, payment, now)
        except DBAPIError as e:
            raise TransactionConflict(payment.id, str(e.orig or e)) from e

    async def _release_in_transaction(
        self,
        session: AsyncSession,
        payment: EligiblePayment,
        now: datetime,
    ) -> CommissionReleaseResult:
        owner = payment.affiliate_owner
        amount = payment.commission_amount

        # 1. Payment: PENDING -> RELEASED (guarded so a released payment is never reprocessed)
        payment_result = await session.execute(
            update(Payment)
            .where(
                and_(
                    Payment.id == payment.id,
                    Payment.commission_status == CommissionStatus.PENDING.value,
                )
            )
            .values(
                commission_status=CommissionStatus.RELEASED.value,
                commission_released_at=now,
                affiliate_paid=True,
            )
            .execution_options(synchronize_session=False)
        )
        if payment_result.rowcount != 1:
            raise TransactionConflict(payment.id, "commission is no longer PENDING")

        # 2. User: move the amount from pending to spendable
        balance_result = await session.execute(
            update(User)
            .where(User.id == owner.id)
            .values(
                pending_balance=User.pending_balance - amount,
                balance=User.balance + amount,
            )
            .returning(User.balance, User.pending_balance)
            .execution_options(synchronize_session=False)
        )
        row = balance_result.one_or_none()
        if row is None:
            raise TransactionConflict(payment.id, f"affiliate owner {owner.id} not found")

        new_balance = Decimal(row.balance)
        new_pending_balance = Decimal(row.pending_balance)
        if new_balance < 0 or new_pending_balance < 0:
            raise BalanceInvariantViolated(owner.id, payment.id, new_balance, new_pending_balance)

        # Before values come from the atomic update, the snapshot predates
        # earlier releases for the same owner in this run
        previous_balance = new_balance - amount
        previous_pending_balance = new_pending_balance + amount

        # 3. Ledger: COMMISSION_HOLD -> COMMISSION_RELEASE on the existing entry
        ledger_result = await session.execute(
            select(BalanceTransaction)
            .where(
                and_(
                    BalanceTransaction.user_id == owner.id,
                    BalanceTransaction.type == BalanceTransactionType.COMMISSION_HOLD.value,
                    BalanceTransaction.reference_type == ReferenceType.PAYMENT.value,
                    BalanceTransaction.reference_id == payment.id,
                )
            )
            .order_by(BalanceTransaction.id.asc())
            .limit(1)
        )
        entry = ledger_result.scalar_one_or_none()
        if entry is None:
            raise LedgerEntryMissing(payment.id, owner.id)

        release_hold_entry(
            entry,
            balance_after=new_balance,
            released_at=now,
            note=f"Released after {self.hold_days}-day hold period on {now.isoformat()}",
        )
        await session.flush()

        logger.info(
            f"Payment {payment.id}: PENDING -> RELEASED, BalanceTransaction {entry.id}: "
            f"COMMISSION_HOLD -> COMMISSION_RELEASE, user {owner.id} balance "
            f"{previous_balance} -> {new_balance}, pending {previous_pending_balance} -> {new_pending_balance}"
        )

        return CommissionReleaseResult(
            payment_id=payment.id,
            transaction_id=payment.transaction_id,
            affiliate_owner_id=owner.id,
            commission_amount=amount,
            previous_balance=previous_balance,
            new_balance=new_balance,
            previous_pending_balance=previous_pending_balance,
            new_pending_balance=new_pending_balance,
            released_at=now,
        )
