"""
Batch Purger

Deletes records older than a cutoff from a flat collection, one bounded batch
at a time, until a short batch signals the collection is exhausted.

Usage:
    purger = BatchPurger(store, batch_size=100)
    deleted = await purger.purge(RetentionTarget(collection="aiMessages"), cutoff)
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from app.core.config import settings
from app.schemas.retention import RetentionTarget
from app.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


class BatchPurger:
    """
    Purges a flat collection by timestamp in atomic batches of ``batch_size``.

    A full batch means more records may remain: the purger pauses for
    ``pause_seconds`` and queries again with the same cutoff. Errors are
    logged and re-raised; nothing is retried.
    """

    def __init__(
        self,
        store: DocumentStore,
        batch_size: Optional[int] = None,
        pause_seconds: Optional[float] = None,
    ):
        self.store = store
        self.batch_size = batch_size if batch_size is not None else settings.RETENTION_BATCH_SIZE
        self.pause_seconds = (
            pause_seconds if pause_seconds is not None else settings.RETENTION_BATCH_PAUSE_SECONDS
        )
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    async def purge(self, target: RetentionTarget, cutoff: datetime) -> int:
        """
        Delete every record in ``target.collection`` with ``timestamp_field < cutoff``.

        Args:
            target: Collection and timestamp field to purge
            cutoff: Records strictly older than this are deleted

        Returns:
            Total number of records deleted
        """
        total_deleted = 0

        try:
            while True:
                ids = await self.store.find_older_than(
                    target.collection,
                    target.timestamp_field,
                    cutoff,
                    self.batch_size,
                )

                if not ids:
                    if total_deleted == 0:
                        logger.info(f"No old records found in {target.collection}")
                    break

                await self.store.delete_batch(target.collection, ids)
                total_deleted += len(ids)
                logger.info(f"Deleted {len(ids)} old records from {target.collection}")

                if len(ids) < self.batch_size:
                    break

                # Full batch: throttle before looking for more
                await asyncio.sleep(self.pause_seconds)

        except Exception as e:
            logger.error(f"Error cleaning up {target.collection}: {e}", exc_info=True)
            raise

        return total_deleted
