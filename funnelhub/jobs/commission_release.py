"""
Commission Release Job.

Matures held affiliate commissions into spendable balance once their hold
period has elapsed. See funnelhub.services.commission_release.

Triggers:
- Daily scheduled job (via APScheduler)
- POST /api/v1/cron/commission-release (bearer token)
"""
import logging
from typing import Any, Dict, Optional

from funnelhub.services.commission_release import (
    CommissionReleaseService,
    ReleaseRunInProgress,
    get_commission_release_service,
)

logger = logging.getLogger(__name__)


async def run_commission_release_job(
    service: Optional[CommissionReleaseService] = None,
) -> Dict[str, Any]:
    """
    Scheduler entry point: run one release batch and log the outcome.

    Returns:
        Short summary for the scheduler log
    """
    service = service or get_commission_release_service()

    try:
        summary = await service.release_eligible_commissions()
    except ReleaseRunInProgress:
        logger.warning("Commission release already running, skipping scheduled run")
        return {"skipped": True}
    except Exception as e:
        logger.error(f"Commission release job failed: {e}")
        return {"success": False, "error": str(e)}

    for failure in summary.failed_payments:
        logger.warning(
            f"Payment {failure.payment_id} ({failure.transaction_id}) left PENDING: "
            f"[{failure.error_code}] {failure.error}"
        )

    return {
        "success": summary.success,
        "released": summary.total_released,
        "failed": summary.total_failed,
        "total_amount": float(summary.total_amount),
    }


def register_commission_release_job(scheduler, hour: int = 3, minute: int = 0):
    """
    Register the commission release job with APScheduler.

    Runs once a day. max_instances=1 keeps scheduled runs from overlapping
    inside this process; running several app processes with the scheduler
    enabled would need an external lock.
    """
    scheduler.add_job(
        run_commission_release_job,
        'cron',
        hour=hour,
        minute=minute,
        id='commission_release',
        name='Daily affiliate commission release',
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info(f"Commission release job registered to run daily at {hour:02d}:{minute:02d}")
