"""
Ledger Entry State Machine

All type changes on a BalanceTransaction must go through this module.

A commission ledger entry is written once as COMMISSION_HOLD and moves
exactly once to COMMISSION_RELEASE. Every other type is terminal: payouts,
refunds and adjustments are never rewritten.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from funnelhub.models.balance_transaction import BalanceTransaction, BalanceTransactionType
from funnelhub.services.commission_release.errors import InvalidLedgerTransition


# Format: current_type -> [allowed next types]
LEDGER_TRANSITIONS: Dict[str, List[str]] = {
    BalanceTransactionType.COMMISSION_HOLD.value: [
        BalanceTransactionType.COMMISSION_RELEASE.value,
    ],
    BalanceTransactionType.COMMISSION_RELEASE.value: [],
    BalanceTransactionType.PAYOUT.value: [],
    BalanceTransactionType.PAYOUT_REFUND.value: [],
    BalanceTransactionType.ADJUSTMENT.value: [],
}


def can_transition(current_type: str, new_type: str) -> bool:
    """Check if a ledger type change is allowed."""
    return new_type in LEDGER_TRANSITIONS.get(current_type, [])


def validate_transition(entry: BalanceTransaction, new_type: str) -> None:
    """Raise InvalidLedgerTransition unless entry may move to new_type."""
    if not can_transition(entry.type, new_type):
        raise InvalidLedgerTransition(entry.id, entry.type, new_type)


def release_hold_entry(
    entry: BalanceTransaction,
    *,
    balance_after: Decimal,
    released_at: datetime,
    note: str,
) -> BalanceTransaction:
    """
    Transition a COMMISSION_HOLD entry in place to COMMISSION_RELEASE.

    Sets the release timestamp, records the spendable balance after the
    release and appends `note` to the existing notes. The entry's amount,
    balance_before and reference are left untouched.
    """
    new_type = BalanceTransactionType.COMMISSION_RELEASE.value
    validate_transition(entry, new_type)

    entry.type = new_type
    entry.balance_after = balance_after
    entry.released_at = released_at
    entry.notes = f"{entry.notes} | {note}" if entry.notes else note
    return entry
