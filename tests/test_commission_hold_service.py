"""Placing commissions on hold and releasing them after the hold period."""
from datetime import timedelta
from decimal import Decimal

import pytest

from funnelhub.models import BalanceTransactionType, CommissionStatus
from funnelhub.services import CommissionHoldService
from funnelhub.services.commission_release import CommissionReleaseService
from tests.conftest import NOW, ledger_store
from tests.factories import (
    create_affiliate,
    create_payment,
    get_ledger_entry,
    get_payment,
    get_user,
)


class TestHoldCommission:

    def test_hold_moves_commission_to_pending(self, db_url, run):
        async def scenario():
            async with ledger_store(db_url) as session_factory:
                async with session_factory() as session:
                    user, link = await create_affiliate(session, "quinn@example.com", balance="12")
                    payment = await create_payment(session, link, "txn_hold", commission_status=None)
                    entry = await CommissionHoldService(session).hold_commission(
                        payment, Decimal("50"), now=NOW,
                    )
                    await session.commit()

                async with session_factory() as session:
                    stored_user = await get_user(session, user.id)
                    stored_payment = await get_payment(session, payment.id)
                    stored_entry = await get_ledger_entry(session, payment.id)
                return entry, stored_user, stored_payment, stored_entry

        entry, user, payment, stored_entry = run(scenario())

        assert entry is not None
        assert user.balance == Decimal("12")
        assert user.pending_balance == Decimal("50")
        assert user.total_sales == Decimal("50")

        assert payment.commission_status == CommissionStatus.PENDING.value
        assert payment.commission_amount == Decimal("50")
        assert payment.affiliate_paid is False
        assert payment.commission_held_until.replace(tzinfo=None) == (NOW + timedelta(days=30)).replace(tzinfo=None)

        assert stored_entry.type == BalanceTransactionType.COMMISSION_HOLD.value
        assert stored_entry.amount == Decimal("50")
        assert stored_entry.balance_before == Decimal("12")
        assert stored_entry.balance_after == Decimal("12")
        assert stored_entry.user_id == user.id
        assert stored_entry.notes == "Commission held for 30 days"

    def test_zero_commission_is_not_held(self, db_url, run):
        async def scenario():
            async with ledger_store(db_url) as session_factory:
                async with session_factory() as session:
                    user, link = await create_affiliate(session, "ruth@example.com")
                    payment = await create_payment(session, link, "txn_zero", commission_status=None)
                    entry = await CommissionHoldService(session).hold_commission(payment, Decimal("0"), now=NOW)
                    await session.commit()
                    return entry, payment.commission_status

        entry, commission_status = run(scenario())

        assert entry is None
        assert commission_status is None

    def test_rejects_payment_without_affiliate_link(self, db_url, run):
        async def scenario():
            async with ledger_store(db_url) as session_factory:
                async with session_factory() as session:
                    payment = await create_payment(session, None, "txn_direct", commission_status=None)
                    await CommissionHoldService(session).hold_commission(payment, Decimal("10"), now=NOW)

        with pytest.raises(ValueError):
            run(scenario())

    def test_rejects_negative_commission(self, db_url, run):
        async def scenario():
            async with ledger_store(db_url) as session_factory:
                async with session_factory() as session:
                    user, link = await create_affiliate(session, "sam@example.com")
                    payment = await create_payment(session, link, "txn_negative", commission_status=None)
                    await CommissionHoldService(session).hold_commission(payment, Decimal("-1"), now=NOW)

        with pytest.raises(ValueError):
            run(scenario())


class TestHoldThenRelease:

    def test_commission_released_only_after_hold_period(self, db_url, notifier, run):
        async def scenario():
            async with ledger_store(db_url) as session_factory:
                async with session_factory() as session:
                    user, link = await create_affiliate(session, "tara@example.com")
                    payment = await create_payment(session, link, "txn_lifecycle", commission_status=None)
                    await CommissionHoldService(session, hold_days=30).hold_commission(
                        payment, Decimal("42.50"), now=NOW,
                    )
                    await session.commit()

                early = await CommissionReleaseService(
                    session_factory, notifier, clock=lambda: NOW + timedelta(days=29),
                ).release_eligible_commissions()
                late = await CommissionReleaseService(
                    session_factory, notifier, clock=lambda: NOW + timedelta(days=31),
                ).release_eligible_commissions()

                async with session_factory() as session:
                    stored_user = await get_user(session, user.id)
                    stored_entry = await get_ledger_entry(session, payment.id)
                return early, late, stored_user, stored_entry

        early, late, user, entry = run(scenario())

        assert early.total_eligible == 0
        assert late.total_released == 1
        assert late.total_amount == Decimal("42.50")
        assert user.balance == Decimal("42.50")
        assert user.pending_balance == Decimal("0")
        assert user.total_sales == Decimal("42.50")
        assert entry.type == BalanceTransactionType.COMMISSION_RELEASE.value
        assert entry.balance_before == Decimal("0")
        assert entry.balance_after == Decimal("42.50")
