"""
Admin Retention Endpoints

Manual retention cleanup and scheduler status for platform admins.
"""
from fastapi import APIRouter, Depends

from app.core.platform_admin import caller_id, require_admin
from app.schemas.retention import (
    ManualCleanupRequest,
    ManualCleanupResponse,
    RetentionSchedulerStatus,
)
from app.services.auth_service import get_current_user
from app.services.background_jobs.retention_cleanup_job import get_retention_scheduler_status
from app.services.retention_service import data_retention_service

router = APIRouter()


@router.post("/manual-cleanup", response_model=ManualCleanupResponse, response_model_by_alias=True)
async def manual_cleanup(
    request: ManualCleanupRequest,
    user_info: dict = Depends(get_current_user),
):
    """
    Purge records older than ``customRetentionDays`` days.

    - Each collection in ``collectionNames`` is purged by its ``timestamp`` field
    - If ``specificUserId`` is set, that user's activity is summarized and purged
      and reported under ``userActivities``

    Not transactional: on failure, collections processed before the error stay purged.
    """
    return await data_retention_service.manual_cleanup(request, caller_id=caller_id(user_info))


@router.get("/scheduler/status", response_model=RetentionSchedulerStatus)
async def retention_scheduler_status(
    user_info: dict = Depends(require_admin()),
):
    """Status of the daily retention cleanup scheduler."""
    return get_retention_scheduler_status()
