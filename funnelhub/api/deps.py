from typing import Annotated, Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from funnelhub.config import settings
from funnelhub.core.security import verify_cron_token
from funnelhub.services.commission_release import (
    CommissionReleaseService,
    get_commission_release_service,
)


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme (missing header handled below as 401)
cron_security = HTTPBearer(auto_error=False)


async def require_cron_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(cron_security)],
) -> None:
    """
    Dependency guarding cron endpoints with the shared CRON_SECRET.

    503 when no secret is configured, 401 for a missing or wrong token.
    """
    if not settings.CRON_SECRET:
        logger.error("Cron endpoint called but CRON_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cron trigger is not configured",
        )

    token = credentials.credentials if credentials else None
    if not verify_cron_token(token, settings.CRON_SECRET):
        logger.warning("Rejected cron request with missing or invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron token",
            headers={"WWW-Authenticate": "Bearer"},
        )


CronAuth = Depends(require_cron_token)
ReleaseService = Annotated[CommissionReleaseService, Depends(get_commission_release_service)]
