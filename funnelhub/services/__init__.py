# Services module
from funnelhub.services.commission_hold_service import CommissionHoldService
from funnelhub.services.email_service import EmailService, get_email_service

__all__ = [
    "CommissionHoldService",
    "EmailService",
    "get_email_service",
]
