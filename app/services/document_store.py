"""
Document Store

The datastore operations the retention engine relies on, and their Supabase
implementation:

- range query on a timestamp field with a result limit
- atomic multi-row delete (one statement per batch)
- upsert-with-merge of a single summary row keyed by (user_id, period)

Flat collections map to tables of the same name. Per-user activities live in
``user_activities`` keyed by ``user_id``; monthly summaries in
``activity_summaries`` with a unique (user_id, period) constraint.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.schemas.retention import ActivityRecord, ActivitySummary, ActivityTypeStats
from app.services.database import DatabaseService, db_service

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """Datastore contract used by the batch purger and activity archiver."""

    @abstractmethod
    async def find_older_than(
        self,
        collection: str,
        timestamp_field: str,
        cutoff: datetime,
        limit: int,
    ) -> List[str]:
        """Ids of up to ``limit`` records whose ``timestamp_field`` is strictly before ``cutoff``."""

    @abstractmethod
    async def delete_batch(self, collection: str, ids: List[str]) -> None:
        """Delete ``ids`` from ``collection`` in one atomic write."""

    @abstractmethod
    async def list_user_ids(self) -> List[str]:
        """Every user id, unpaginated."""

    @abstractmethod
    async def find_user_activities_older_than(
        self,
        user_id: str,
        cutoff: datetime,
    ) -> List[ActivityRecord]:
        """All of a user's activity records strictly before ``cutoff`` (no limit)."""

    @abstractmethod
    async def delete_user_activities(self, user_id: str, ids: List[str]) -> None:
        """Delete a user's activity records in one atomic write."""

    @abstractmethod
    async def merge_activity_summary(
        self,
        user_id: str,
        period: str,
        activity_counts: Dict[str, ActivityTypeStats],
        total_activities: int,
        summarized_at: datetime,
    ) -> None:
        """
        Create or merge the (user_id, period) summary.

        ``activity_counts`` is merged per type: types present in the write replace
        their stored entry, other stored types are kept. ``total_activities`` and
        ``summarized_at`` are overwritten.
        """


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore backed by Supabase (PostgREST) tables."""

    def __init__(self, database: Optional[DatabaseService] = None, page_size: Optional[int] = None):
        self._database = database or db_service
        self.page_size = page_size or settings.SUPABASE_PAGE_SIZE

    @property
    def client(self):
        return self._database.client

    def _fetch_all(self, build_query) -> List[Dict[str, Any]]:
        """
        Read every row a query matches.

        PostgREST caps each response at its max-rows setting, so rows are read
        in id order one range at a time until an empty page comes back.
        ``build_query`` must return a fresh filtered query on each call.
        """
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            response = build_query().order("id").range(
                offset, offset + self.page_size - 1
            ).execute()
            page = response.data or []
            if not page:
                break
            rows.extend(page)
            offset += len(page)
        return rows

    async def find_older_than(
        self,
        collection: str,
        timestamp_field: str,
        cutoff: datetime,
        limit: int,
    ) -> List[str]:
        response = self.client.table(collection).select("id").lt(
            timestamp_field, cutoff.isoformat()
        ).limit(limit).execute()
        return [str(row["id"]) for row in (response.data or [])]

    async def delete_batch(self, collection: str, ids: List[str]) -> None:
        if not ids:
            return
        self.client.table(collection).delete().in_("id", ids).execute()

    async def list_user_ids(self) -> List[str]:
        rows = self._fetch_all(
            lambda: self.client.table(settings.USERS_TABLE).select("id")
        )
        return [str(row["id"]) for row in rows]

    async def find_user_activities_older_than(
        self,
        user_id: str,
        cutoff: datetime,
    ) -> List[ActivityRecord]:
        rows = self._fetch_all(
            lambda: self.client.table(settings.USER_ACTIVITIES_TABLE).select(
                "id, type, timestamp"
            ).eq("user_id", user_id).lt("timestamp", cutoff.isoformat())
        )

        return [
            ActivityRecord(
                id=str(row["id"]),
                type=row.get("type") or "unknown",
                timestamp=row["timestamp"],
            )
            for row in rows
        ]

    async def delete_user_activities(self, user_id: str, ids: List[str]) -> None:
        if not ids:
            return
        self.client.table(settings.USER_ACTIVITIES_TABLE).delete().eq(
            "user_id", user_id
        ).in_("id", ids).execute()

    async def merge_activity_summary(
        self,
        user_id: str,
        period: str,
        activity_counts: Dict[str, ActivityTypeStats],
        total_activities: int,
        summarized_at: datetime,
    ) -> None:
        table = settings.ACTIVITY_SUMMARIES_TABLE

        existing = self.client.table(table).select("activity_counts").eq(
            "user_id", user_id
        ).eq("period", period).execute()

        merged: Dict[str, Any] = {}
        if existing.data:
            merged.update(existing.data[0].get("activity_counts") or {})
        merged.update(activity_counts)

        summary = ActivitySummary(
            period=period,
            activity_counts=merged,
            total_activities=total_activities,
            summarized_at=summarized_at,
        )

        self.client.table(table).upsert(
            {"user_id": user_id, **summary.model_dump(mode="json")},
            on_conflict="user_id,period",
        ).execute()
