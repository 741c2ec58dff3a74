"""
Commission release error variants.

Each failure the job can classify has its own class with a stable `code`
and the context needed to trace it. Nothing upstream inspects messages.

    fatal        EligibilityQueryFailed, ReleaseRunInProgress
    per payment  LedgerEntryMissing, TransactionConflict,
                 BalanceInvariantViolated, InvalidLedgerTransition
    notification NotificationFailed
"""
from decimal import Decimal
from typing import Optional


UNEXPECTED_ERROR_CODE = "UNEXPECTED_ERROR"


class CommissionReleaseError(Exception):
    """Base class for commission release failures."""
    code = "COMMISSION_RELEASE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EligibilityQueryFailed(CommissionReleaseError):
    """The eligible-payment query could not be run. Aborts the whole run."""
    code = "ELIGIBILITY_QUERY_FAILED"

    def __init__(self, cause: Exception):
        super().__init__(f"Failed to load eligible payments: {cause}")
        self.cause = cause


class ReleaseRunInProgress(CommissionReleaseError):
    """Another release run is already executing in this process."""
    code = "RELEASE_RUN_IN_PROGRESS"

    def __init__(self):
        super().__init__("A commission release run is already in progress")


class LedgerEntryMissing(CommissionReleaseError):
    """No COMMISSION_HOLD ledger entry exists for the payment."""
    code = "LEDGER_ENTRY_MISSING"

    def __init__(self, payment_id: int, user_id: int):
        super().__init__(
            f"COMMISSION_HOLD BalanceTransaction not found for payment {payment_id} "
            f"(user {user_id})"
        )
        self.payment_id = payment_id
        self.user_id = user_id


class TransactionConflict(CommissionReleaseError):
    """The payment changed underneath us or the datastore rejected the transaction."""
    code = "TRANSACTION_CONFLICT"

    def __init__(self, payment_id: int, reason: str):
        super().__init__(f"Could not release payment {payment_id}: {reason}")
        self.payment_id = payment_id
        self.reason = reason


class BalanceInvariantViolated(CommissionReleaseError):
    """Releasing would leave a negative balance."""
    code = "BALANCE_INVARIANT_VIOLATED"

    def __init__(
        self,
        user_id: int,
        payment_id: int,
        balance: Decimal,
        pending_balance: Decimal,
    ):
        super().__init__(
            f"Releasing payment {payment_id} leaves user {user_id} with "
            f"balance={balance}, pending_balance={pending_balance}"
        )
        self.user_id = user_id
        self.payment_id = payment_id
        self.balance = balance
        self.pending_balance = pending_balance


class InvalidLedgerTransition(CommissionReleaseError):
    """A ledger entry was asked to move to a state it cannot reach."""
    code = "INVALID_LEDGER_TRANSITION"

    def __init__(self, entry_id: Optional[int], current_type: str, new_type: str):
        super().__init__(
            f"BalanceTransaction {entry_id} cannot move from {current_type} to {new_type}"
        )
        self.entry_id = entry_id
        self.current_type = current_type
        self.new_type = new_type


class NotificationFailed(CommissionReleaseError):
    """A grouped release notification could not be delivered."""
    code = "NOTIFICATION_FAILED"

    def __init__(self, recipient: str, reason: str):
        super().__init__(f"Failed to notify {recipient}: {reason}")
        self.recipient = recipient
        self.reason = reason


def error_code_for(exc: BaseException) -> str:
    """Stable code for a failure recorded in the run summary."""
    if isinstance(exc, CommissionReleaseError):
        return exc.code
    return UNEXPECTED_ERROR_CODE
