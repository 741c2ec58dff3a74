"""
Commission Release Service

Releases affiliate commissions whose hold period has elapsed.

Process:
1. Find payments where commission_held_until < now and commission_status = PENDING
2. For each payment, one at a time and oldest first, release it in its own
   transaction. A failure is recorded and the run moves on; the payment
   stays PENDING and is retried by the next run.
3. Send one notification per affiliate for everything released
4. Return a CommissionReleaseSummary

Only a failure to load eligible payments aborts the run. The service
assumes a single runner: overlapping runs in one process are rejected,
overlap across processes must be prevented by the scheduler.
"""
import asyncio
import logging
import time
import traceback
from functools import lru_cache
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnelhub.schemas.commission_release import (
    CommissionReleaseFailure,
    CommissionReleaseResult,
    CommissionReleaseSummary,
    EligiblePayment,
    NotificationDispatchReport,
)
from funnelhub.services.commission_release.eligibility import EligibilitySelector
from funnelhub.services.commission_release.errors import (
    ReleaseRunInProgress,
    error_code_for,
)
from funnelhub.services.commission_release.executor import ReleaseExecutor
from funnelhub.services.commission_release.notifications import (
    CommissionNotificationDispatcher,
    CommissionNotifier,
    group_by_affiliate,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CommissionReleaseService:
    """Batch job that matures held commissions into spendable balance."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: CommissionNotifier,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        hold_days: int = 30,
        max_concurrent_notifications: int = 5,
    ):
        """
        Args:
            session_factory: Datastore handle; every read and release opens
                its own session from it
            notifier: Delivery channel for release notifications
            clock: Returns the current UTC time (overridable in tests)
            hold_days: Hold period, quoted in ledger notes
            max_concurrent_notifications: Parallel notification sends
        """
        self.clock = clock or utc_now
        self.selector = EligibilitySelector(session_factory)
        self.executor = ReleaseExecutor(session_factory, hold_days=hold_days)
        self.dispatcher = CommissionNotificationDispatcher(
            session_factory,
            notifier,
            max_concurrent=max_concurrent_notifications,
        )
        self._run_lock = asyncio.Lock()

    async def release_eligible_commissions(self) -> CommissionReleaseSummary:
        """
        Main entry point: release all eligible commissions.

        Raises:
            ReleaseRunInProgress: another run is executing in this process
            EligibilityQueryFailed: eligible payments could not be loaded
        """
        if self._run_lock.locked():
            raise ReleaseRunInProgress()

        async with self._run_lock:
            try:
                return await self._run()
            except Exception:
                logger.exception("Fatal error in commission release process")
                raise

    async def _run(self) -> CommissionReleaseSummary:
        started = time.monotonic()
        started_at = self.clock()
        logger.info("Starting commission release process...")

        eligible = await self.selector.find_eligible_payments(started_at)
        logger.info(f"Found {len(eligible)} eligible payment(s)")

        if not eligible:
            logger.info("No commissions to release")
            return CommissionReleaseSummary(
                success=True,
                started_at=started_at,
                execution_time_ms=_elapsed_ms(started),
            )

        released: List[CommissionReleaseResult] = []
        failed: List[CommissionReleaseFailure] = []
        total_amount = Decimal("0")

        for payment in eligible:
            outcome = await self._release_one(payment)
            if isinstance(outcome, CommissionReleaseFailure):
                failed.append(outcome)
            else:
                released.append(outcome)
                total_amount += outcome.commission_amount

        try:
            report = await self.dispatcher.dispatch(released)
        except Exception as e:
            # releases are committed, a notification fault never fails the run
            affiliates = len(group_by_affiliate(released))
            logger.error(
                f"Commission notifications aborted for {affiliates} affiliate(s): {e}",
                exc_info=True,
            )
            report = NotificationDispatchReport(failed=affiliates)

        summary = CommissionReleaseSummary(
            success=not failed,
            total_eligible=len(eligible),
            total_released=len(released),
            total_failed=len(failed),
            total_amount=total_amount,
            released_payments=released,
            failed_payments=failed,
            notifications_sent=report.sent,
            notifications_failed=report.failed,
            started_at=started_at,
            execution_time_ms=_elapsed_ms(started),
        )

        logger.info(
            f"Commission release completed: {summary.total_released}/{summary.total_eligible} released, "
            f"{summary.total_failed} failed, ${summary.total_amount:.2f} total, "
            f"{summary.execution_time_ms}ms"
        )
        return summary

    async def _release_one(self, payment: EligiblePayment):
        logger.info(f"Processing payment {payment.id} ({payment.transaction_id})")
        try:
            result = await self.executor.release(payment, self.clock())
        except Exception as e:
            logger.error(
                f"Failed to release commission for payment {payment.id}: {e}",
                exc_info=True,
            )
            return CommissionReleaseFailure(
                payment_id=payment.id,
                transaction_id=payment.transaction_id,
                error_code=error_code_for(e),
                error=str(e),
                stack="".join(traceback.format_exception(type(e), e, e.__traceback__)),
            )

        logger.info(f"Released {result.commission_amount} for payment {result.payment_id}")
        return result


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


@lru_cache()
def get_commission_release_service() -> CommissionReleaseService:
    """Shared service wired to the application database and SMTP settings.

    Cached so the HTTP trigger and the scheduler share one run lock.
    """
    from funnelhub.config import settings
    from funnelhub.database import async_session_factory
    from funnelhub.services.email_service import get_email_service
    from funnelhub.services.commission_release.notifications import EmailCommissionNotifier

    return CommissionReleaseService(
        async_session_factory,
        EmailCommissionNotifier(get_email_service(), hold_days=settings.COMMISSION_HOLD_DAYS),
        hold_days=settings.COMMISSION_HOLD_DAYS,
        max_concurrent_notifications=settings.NOTIFICATION_MAX_CONCURRENT,
    )
