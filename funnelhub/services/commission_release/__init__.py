"""Commission release job: hold expiry -> spendable balance."""
from funnelhub.services.commission_release.service import (
    CommissionReleaseService,
    get_commission_release_service,
)
from funnelhub.services.commission_release.notifications import (
    CommissionNotifier,
    EmailCommissionNotifier,
)
from funnelhub.services.commission_release.errors import (
    CommissionReleaseError,
    EligibilityQueryFailed,
    ReleaseRunInProgress,
    LedgerEntryMissing,
    TransactionConflict,
    BalanceInvariantViolated,
    InvalidLedgerTransition,
    NotificationFailed,
)

__all__ = [
    "CommissionReleaseService",
    "get_commission_release_service",
    "CommissionNotifier",
    "EmailCommissionNotifier",
    "CommissionReleaseError",
    "EligibilityQueryFailed",
    "ReleaseRunInProgress",
    "LedgerEntryMissing",
    "TransactionConflict",
    "BalanceInvariantViolated",
    "InvalidLedgerTransition",
    "NotificationFailed",
]
