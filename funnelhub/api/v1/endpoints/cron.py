"""API endpoints for scheduled jobs triggered by an external scheduler."""
import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from funnelhub.api.deps import CronAuth, ReleaseService
from funnelhub.jobs.scheduler import get_job_status
from funnelhub.schemas.commission_release import CommissionReleaseSummary
from funnelhub.services.commission_release import ReleaseRunInProgress

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[CronAuth])


@router.post(
    "/commission-release",
    response_model=CommissionReleaseSummary,
    responses={
        409: {"description": "A release run is already in progress"},
        500: {"description": "Eligible payments could not be loaded; nothing was released"},
    },
)
async def run_commission_release(service: ReleaseService):
    """
    Release every affiliate commission whose hold period has elapsed.

    Returns 200 even when some payments failed; check `success` and
    `failed_payments`. Failed payments stay PENDING and are retried on the
    next run.
    """
    logger.info("Commission release triggered via cron endpoint")

    try:
        return await service.release_eligible_commissions()
    except ReleaseRunInProgress as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"success": False, "error": e.message, "code": e.code},
        )
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": str(e),
                "code": getattr(e, "code", "UNEXPECTED_ERROR"),
            },
        )


@router.get("/jobs")
async def list_scheduled_jobs():
    """Jobs registered with the in-process scheduler."""
    return {"jobs": get_job_status()}
