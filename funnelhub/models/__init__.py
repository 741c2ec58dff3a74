from funnelhub.models.user import User
from funnelhub.models.affiliate_link import AffiliateLink
from funnelhub.models.payment import Payment, PaymentStatus, CommissionStatus
from funnelhub.models.balance_transaction import (
    BalanceTransaction,
    BalanceTransactionType,
    ReferenceType,
)

__all__ = [
    "User",
    "AffiliateLink",
    "Payment",
    "PaymentStatus",
    "CommissionStatus",
    "BalanceTransaction",
    "BalanceTransactionType",
    "ReferenceType",
]
