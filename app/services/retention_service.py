"""
Data Retention Service

Entry points for the retention engine:

- manual_cleanup: admin-triggered, parameterized, returns per-target counts.
  Failures surface as InternalCleanupError; targets already processed stay
  deleted.
- cleanup_old_records: the daily scheduled run. Fixed window and targets,
  logs a summary, and never raises.

Usage:
    response = await data_retention_service.manual_cleanup(request, caller_id="uid")
    stats = await data_retention_service.cleanup_old_records()
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from app.core.config import settings
from app.core.errors import InternalCleanupError, PermissionDeniedError, UnauthenticatedError
from app.core.platform_admin import is_admin
from app.schemas.retention import (
    USER_ACTIVITIES_KEY,
    CleanupRunStats,
    ManualCleanupRequest,
    ManualCleanupResponse,
    RetentionTarget,
)
from app.services.activity_archiver import ActivityArchiver
from app.services.batch_purger import BatchPurger
from app.services.document_store import DocumentStore, SupabaseDocumentStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataRetentionService:
    """Binds the batch purger and activity archiver to configuration and a clock."""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        batch_size: Optional[int] = None,
        retention_days: Optional[int] = None,
        scheduled_collections: Optional[List[str]] = None,
        batch_pause_seconds: Optional[float] = None,
        user_pause_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
        authorizer: Callable[[str], bool] = is_admin,
    ):
        self.store = store or SupabaseDocumentStore()
        self.retention_days = (
            retention_days if retention_days is not None else settings.DEFAULT_RETENTION_DAYS
        )
        self.scheduled_collections = list(
            scheduled_collections if scheduled_collections is not None else settings.RETENTION_FLAT_COLLECTIONS
        )
        self.clock = clock
        self.authorizer = authorizer
        self.purger = BatchPurger(self.store, batch_size=batch_size, pause_seconds=batch_pause_seconds)
        self.archiver = ActivityArchiver(self.store, batch_size=batch_size, pause_seconds=user_pause_seconds)

    def compute_cutoff(self, retention_days: int, now: Optional[datetime] = None) -> datetime:
        """Records strictly older than the returned instant are eligible for deletion."""
        return (now or self.clock()) - timedelta(days=retention_days)

    # =========================================================================
    # Interactive
    # =========================================================================

    async def manual_cleanup(
        self,
        request: ManualCleanupRequest,
        caller_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> ManualCleanupResponse:
        """
        Purge the requested collections and, optionally, one user's activity.

        Args:
            request: Collections, optional user and retention window
            caller_id: Authenticated user id of the caller
            now: Reference time for the cutoff (defaults to the service clock)

        Returns:
            ManualCleanupResponse with a count per collection name, plus
            ``userActivities`` when a user was given

        Raises:
            UnauthenticatedError: No caller id
            PermissionDeniedError: Caller is not an admin
            InternalCleanupError: Any failure while purging
        """
        if not caller_id:
            raise UnauthenticatedError()
        if not self.authorizer(caller_id):
            raise PermissionDeniedError()

        now = now or self.clock()
        cutoff = self.compute_cutoff(request.custom_retention_days, now=now)
        results = ManualCleanupResponse()

        logger.info(
            f"Starting manual cleanup for records older than {request.custom_retention_days} days "
            f"(cutoff={cutoff.isoformat()}, requested_by={caller_id})"
        )

        try:
            for collection in request.collection_names:
                target = RetentionTarget(collection=collection, timestamp_field="timestamp")
                results.deleted_records[collection] = await self.purger.purge(target, cutoff)

            if request.specific_user_id:
                results.deleted_records[USER_ACTIVITIES_KEY] = await self.archiver.archive_and_purge_user(
                    request.specific_user_id, cutoff, now=now
                )

        except Exception as e:
            logger.error(
                f"Error during manual cleanup (partial results: {results.deleted_records}): {e}",
                exc_info=True,
            )
            raise InternalCleanupError(cause=e) from e

        logger.info(f"Manual cleanup completed successfully: {results.deleted_records}")
        return results

    # =========================================================================
    # Scheduled
    # =========================================================================

    async def cleanup_old_records(self, now: Optional[datetime] = None) -> Optional[CleanupRunStats]:
        """
        Daily retention run over the fixed collections and every user's activity.

        Returns:
            CleanupRunStats on success, None if the run failed (the failure is logged)
        """
        try:
            now = now or self.clock()
            cutoff = self.compute_cutoff(self.retention_days, now=now)
            logger.info(
                f"Starting data retention cleanup for records older than {self.retention_days} days"
            )

            stats = CleanupRunStats(retention_days=self.retention_days, cutoff=cutoff)
            for collection in self.scheduled_collections:
                target = RetentionTarget(collection=collection, timestamp_field="timestamp")
                stats.deleted_by_collection[collection] = await self.purger.purge(target, cutoff)

            stats.user_activities_archived = await self.archiver.archive_and_purge_all_users(cutoff, now=now)

            counts = ", ".join(f"{name}={count}" for name, count in stats.deleted_by_collection.items())
            logger.info(
                f"Data retention cleanup completed successfully: {counts}, "
                f"user_activities_archived={stats.user_activities_archived}"
            )
            return stats

        except Exception as e:
            logger.error(f"Error during data retention cleanup: {e}", exc_info=True)
            return None


data_retention_service = DataRetentionService()
