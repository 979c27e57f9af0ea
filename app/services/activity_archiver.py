"""
Activity Archiver

Folds each user's stale activity records into a monthly summary, then deletes
the detail rows.

Per user:
1. Load every activity older than the cutoff (no read limit)
2. Group by type: count, first and last timestamp
3. Merge the summary keyed by the cutoff's YYYY-MM
4. Delete the archived rows in sequential batches of ``batch_size``

Sweep over all users:
    Users are processed in order. When a single user yields ``batch_size`` or
    more deletions, the sweep pauses, starts over from the first user, and the
    rest of the interrupted pass is dropped. Users late in the list can
    therefore be skipped on a given run while earlier users get repeat passes;
    a later scheduled run picks them up.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.core.config import settings
from app.schemas.retention import ActivityRecord, ActivityTypeStats
from app.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


def summary_period(cutoff: datetime) -> str:
    """YYYY-MM of the cutoff in UTC."""
    if cutoff.tzinfo is not None:
        cutoff = cutoff.astimezone(timezone.utc)
    return cutoff.strftime("%Y-%m")


def group_activities(records: List[ActivityRecord]) -> Dict[str, ActivityTypeStats]:
    stats: Dict[str, ActivityTypeStats] = {}
    for record in records:
        entry = stats.get(record.type)
        if entry is None:
            stats[record.type] = ActivityTypeStats(
                count=1,
                first_timestamp=record.timestamp,
                last_timestamp=record.timestamp,
            )
            continue
        entry.count += 1
        if record.timestamp < entry.first_timestamp:
            entry.first_timestamp = record.timestamp
        if record.timestamp > entry.last_timestamp:
            entry.last_timestamp = record.timestamp
    return stats


class ActivityArchiver:
    """Summarizes and purges per-user activity records."""

    def __init__(
        self,
        store: DocumentStore,
        batch_size: Optional[int] = None,
        pause_seconds: Optional[float] = None,
    ):
        self.store = store
        self.batch_size = batch_size if batch_size is not None else settings.RETENTION_BATCH_SIZE
        self.pause_seconds = (
            pause_seconds if pause_seconds is not None else settings.RETENTION_USER_PAUSE_SECONDS
        )
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    async def archive_and_purge_user(
        self,
        user_id: str,
        cutoff: datetime,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Summarize and delete one user's activities older than ``cutoff``.

        Args:
            user_id: Owner of the activity records
            cutoff: Records strictly older than this are archived
            now: Timestamp stored as ``summarized_at`` (defaults to current UTC time)

        Returns:
            Number of activity records deleted for the user
        """
        try:
            records = await self.store.find_user_activities_older_than(user_id, cutoff)
            if not records:
                return 0

            period = summary_period(cutoff)
            await self.store.merge_activity_summary(
                user_id=user_id,
                period=period,
                activity_counts=group_activities(records),
                total_activities=len(records),
                summarized_at=now or datetime.now(timezone.utc),
            )

            ids = [record.id for record in records]
            for start in range(0, len(ids), self.batch_size):
                await self.store.delete_user_activities(user_id, ids[start:start + self.batch_size])

            logger.info(f"Summarized and deleted {len(ids)} activities for user {user_id}")
            return len(ids)

        except Exception as e:
            logger.error(f"Error summarizing activities for user {user_id}: {e}", exc_info=True)
            raise

    async def archive_and_purge_all_users(
        self,
        cutoff: datetime,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Run ``archive_and_purge_user`` for every user, with restart-on-large-user.

        Returns:
            Total activity records deleted across every pass
        """
        total_deleted = 0
        passes = 0

        try:
            restart = True
            while restart:
                restart = False
                passes += 1
                user_ids = await self.store.list_user_ids()

                for user_id in user_ids:
                    deleted = await self.archive_and_purge_user(user_id, cutoff, now=now)
                    total_deleted += deleted

                    if deleted >= self.batch_size:
                        logger.info(
                            f"User {user_id} had {deleted} archived activities; "
                            f"restarting user sweep (pass {passes + 1})"
                        )
                        await asyncio.sleep(self.pause_seconds)
                        restart = True
                        break

        except Exception as e:
            logger.error(f"Error cleaning up user activities: {e}", exc_info=True)
            raise

        return total_deleted
