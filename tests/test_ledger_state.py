"""Ledger entry type transitions."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from funnelhub.models import BalanceTransaction, BalanceTransactionType
from funnelhub.services.commission_release import InvalidLedgerTransition
from funnelhub.services.commission_release.ledger_state import (
    can_transition,
    release_hold_entry,
)

RELEASED_AT = datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)


def make_entry(entry_type=BalanceTransactionType.COMMISSION_HOLD.value, notes="Commission held for 30 days"):
    return BalanceTransaction(
        id=7,
        user_id=1,
        type=entry_type,
        amount=Decimal("50"),
        balance_before=Decimal("0"),
        balance_after=Decimal("0"),
        reference_type="Payment",
        reference_id=42,
        notes=notes,
    )


class TestTransitions:

    def test_hold_can_only_become_release(self):
        hold = BalanceTransactionType.COMMISSION_HOLD.value
        assert can_transition(hold, BalanceTransactionType.COMMISSION_RELEASE.value)
        assert not can_transition(hold, BalanceTransactionType.PAYOUT.value)
        assert not can_transition(hold, BalanceTransactionType.ADJUSTMENT.value)

    @pytest.mark.parametrize("terminal", [
        BalanceTransactionType.COMMISSION_RELEASE.value,
        BalanceTransactionType.PAYOUT.value,
        BalanceTransactionType.PAYOUT_REFUND.value,
        BalanceTransactionType.ADJUSTMENT.value,
    ])
    def test_other_types_are_terminal(self, terminal):
        for target in BalanceTransactionType:
            assert not can_transition(terminal, target.value)

    def test_unknown_type_cannot_transition(self):
        assert not can_transition("SOMETHING_ELSE", BalanceTransactionType.COMMISSION_RELEASE.value)


class TestReleaseHoldEntry:

    def test_rewrites_hold_in_place(self):
        entry = make_entry()

        release_hold_entry(
            entry,
            balance_after=Decimal("50"),
            released_at=RELEASED_AT,
            note="Released after 30-day hold period",
        )

        assert entry.type == BalanceTransactionType.COMMISSION_RELEASE.value
        assert entry.balance_after == Decimal("50")
        assert entry.released_at == RELEASED_AT
        assert entry.notes == "Commission held for 30 days | Released after 30-day hold period"
        # untouched
        assert entry.id == 7
        assert entry.amount == Decimal("50")
        assert entry.balance_before == Decimal("0")
        assert entry.reference_id == 42

    def test_empty_notes_take_release_note(self):
        entry = make_entry(notes=None)

        release_hold_entry(entry, balance_after=Decimal("50"), released_at=RELEASED_AT, note="Released")

        assert entry.notes == "Released"

    def test_released_entry_cannot_be_released_again(self):
        entry = make_entry(entry_type=BalanceTransactionType.COMMISSION_RELEASE.value)

        with pytest.raises(InvalidLedgerTransition) as exc_info:
            release_hold_entry(entry, balance_after=Decimal("100"), released_at=RELEASED_AT, note="again")

        assert exc_info.value.code == "INVALID_LEDGER_TRANSITION"
        assert entry.balance_after == Decimal("0")
        assert entry.notes == "Commission held for 30 days"
