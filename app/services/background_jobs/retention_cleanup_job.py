"""Scheduler for the daily data retention cleanup."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings
from app.schemas.retention import CleanupRunStats, RetentionSchedulerStatus
from app.services.retention_service import data_retention_service

logger = logging.getLogger(__name__)

_scheduler_running = False
_scheduler_task: Optional[asyncio.Task] = None
_last_run_at: Optional[datetime] = None
_last_stats: Optional[CleanupRunStats] = None

CLEANUP_INTERVAL_SECONDS = settings.RETENTION_CLEANUP_INTERVAL_SECONDS


async def run_retention_cleanup_once() -> Optional[CleanupRunStats]:
    """Run one scheduled cleanup. Never raises."""
    global _last_run_at, _last_stats

    try:
        stats = await data_retention_service.cleanup_old_records()
    except Exception as e:
        logger.error(f"Error in retention cleanup cycle: {e}", exc_info=True)
        stats = None

    _last_run_at = datetime.now(timezone.utc)
    _last_stats = stats
    return stats


async def _scheduler_loop() -> None:
    logger.info(f"Retention cleanup scheduler started (interval={CLEANUP_INTERVAL_SECONDS}s)")

    while _scheduler_running:
        stats = await run_retention_cleanup_once()
        if stats is not None:
            logger.info(f"Retention cleanup cycle complete: total_deleted={stats.total_deleted}")

        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)

    logger.info("Retention cleanup scheduler stopped")


def start_retention_cleanup_scheduler() -> None:
    global _scheduler_running, _scheduler_task
    if _scheduler_running:
        logger.warning("Retention cleanup scheduler already running")
        return

    _scheduler_running = True
    _scheduler_task = asyncio.create_task(_scheduler_loop())
    logger.info("Retention cleanup scheduler task created and started")


async def stop_retention_cleanup_scheduler() -> None:
    global _scheduler_running, _scheduler_task
    if not _scheduler_running:
        return

    _scheduler_running = False
    if _scheduler_task:
        _scheduler_task.cancel()
        try:
            await _scheduler_task
        except asyncio.CancelledError:
            pass

    _scheduler_task = None
    logger.info("Retention cleanup scheduler stopped")


def get_retention_scheduler_status() -> RetentionSchedulerStatus:
    return RetentionSchedulerStatus(
        running=_scheduler_running,
        interval_seconds=CLEANUP_INTERVAL_SECONDS,
        task_created=_scheduler_task is not None,
        last_run_at=_last_run_at,
        last_stats=_last_stats,
    )
