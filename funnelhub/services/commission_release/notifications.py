"""
Release notifications.

After a run, each affiliate gets one message covering every commission
released for them in that run. Delivery is best-effort: a failure is
logged and counted, never raised, and never touches ledger state.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnelhub.models.user import User
from funnelhub.schemas.commission_release import (
    CommissionReleaseResult,
    CommissionReleasedEmailData,
    NotificationDispatchReport,
)
from funnelhub.services.commission_release.errors import NotificationFailed
from funnelhub.services.email_service import EmailService

logger = logging.getLogger(__name__)


class CommissionNotifier(ABC):
    """Delivery channel for commission release notifications."""

    @abstractmethod
    async def send_commission_released(self, data: CommissionReleasedEmailData) -> None:
        """Deliver one notification. Raise on failure."""
        pass


class EmailCommissionNotifier(CommissionNotifier):
    """Sends the commission released email over SMTP."""

    def __init__(self, email_service: EmailService, hold_days: int = 30):
        self.email_service = email_service
        self.hold_days = hold_days

    async def send_commission_released(self, data: CommissionReleasedEmailData) -> None:
        if not self.email_service.is_configured:
            logger.warning(
                f"Email not configured, skipping commission email to {data.affiliate_owner_email}"
            )
            return

        # smtplib blocks, keep it off the event loop
        sent = await asyncio.to_thread(
            self.email_service.send_commission_released_email,
            to_email=data.affiliate_owner_email,
            affiliate_name=data.affiliate_owner_name,
            commission_amount=data.commission_amount,
            new_available_balance=data.new_available_balance,
            number_of_commissions=data.number_of_commissions,
            hold_days=self.hold_days,
        )
        if not sent:
            raise NotificationFailed(data.affiliate_owner_email, "SMTP delivery failed")


def group_by_affiliate(
    released: List[CommissionReleaseResult],
) -> Dict[int, List[CommissionReleaseResult]]:
    """Group release results by affiliate owner, keeping release order."""
    grouped: Dict[int, List[CommissionReleaseResult]] = defaultdict(list)
    for result in released:
        grouped[result.affiliate_owner_id].append(result)
    return dict(grouped)


class CommissionNotificationDispatcher:
    """Sends one consolidated release notification per affiliate."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: CommissionNotifier,
        max_concurrent: int = 5,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def dispatch(self, released: List[CommissionReleaseResult]) -> NotificationDispatchReport:
        """
        Notify every affiliate with at least one released commission.

        Balances are read fresh after all releases committed, so the email
        shows the affiliate's current spendable balance rather than the
        pre-release snapshot.
        """
        report = NotificationDispatchReport()
        if not released:
            return report

        grouped = group_by_affiliate(released)
        logger.info(f"Sending {len(grouped)} commission release notification(s)...")

        try:
            owners = await self._load_owners(list(grouped.keys()))
        except SQLAlchemyError as e:
            logger.error(f"Could not load affiliate owners for notifications: {e}")
            report.failed = len(grouped)
            return report

        messages = []
        for user_id, results in grouped.items():
            owner = owners.get(user_id)
            if owner is None:
                logger.warning(f"Affiliate owner {user_id} not found, skipping notification")
                report.skipped += 1
                continue
            messages.append((user_id, self._build_message(owner, results)))

        outcomes = await asyncio.gather(
            *(self._send(user_id, data) for user_id, data in messages)
        )
        report.sent = sum(1 for ok in outcomes if ok)
        report.failed += sum(1 for ok in outcomes if not ok)
        return report

    async def _load_owners(self, user_ids: List[int]) -> Dict[int, User]:
        async with self.session_factory() as session:
            result = await session.execute(select(User).where(User.id.in_(user_ids)))
            return {user.id: user for user in result.scalars().all()}

    @staticmethod
    def _build_message(
        owner: User,
        results: List[CommissionReleaseResult],
    ) -> CommissionReleasedEmailData:
        total = sum((r.commission_amount for r in results), Decimal("0"))
        return CommissionReleasedEmailData(
            affiliate_owner_email=owner.email,
            affiliate_owner_name=owner.full_name,
            commission_amount=total,
            new_available_balance=owner.balance,
            number_of_commissions=len(results),
            payment_ids=[r.payment_id for r in results],
        )

    async def _send(self, user_id: int, data: CommissionReleasedEmailData) -> bool:
        async with self._semaphore:
            try:
                await self.notifier.send_commission_released(data)
            except Exception as e:
                logger.error(
                    f"Failed to send commission notification to affiliate {user_id} "
                    f"({data.affiliate_owner_email}): {e}"
                )
                return False

        logger.info(
            f"Sent commission notification to {data.affiliate_owner_email} "
            f"({data.number_of_commissions} commission(s), ${data.commission_amount:.2f})"
        )
        return True
