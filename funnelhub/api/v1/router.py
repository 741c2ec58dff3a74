from fastapi import APIRouter

from funnelhub.api.v1.endpoints import cron

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(cron.router, prefix="/cron", tags=["Cron"])
