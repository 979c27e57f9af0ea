"""Retention schemas: purge targets, activity summaries, and cleanup request/response."""
import math
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Key under which the per-user archiver count is reported by manual cleanup.
USER_ACTIVITIES_KEY = "userActivities"


class RetentionTarget(BaseModel):
    """A flat collection purged by timestamp comparison."""
    model_config = ConfigDict(frozen=True)

    collection: str
    timestamp_field: str = "timestamp"


class ActivityRecord(BaseModel):
    """One per-user activity row as read by the archiver."""
    id: str
    type: str = "unknown"
    timestamp: datetime


class ActivityTypeStats(BaseModel):
    count: int = 0
    first_timestamp: datetime
    last_timestamp: datetime


class ActivitySummary(BaseModel):
    """Monthly rollup of a user's archived activity."""
    period: str
    activity_counts: Dict[str, ActivityTypeStats] = Field(default_factory=dict)
    total_activities: int = 0
    summarized_at: datetime


class ManualCleanupRequest(BaseModel):
    """Parameters for an admin-triggered cleanup."""
    model_config = ConfigDict(populate_by_name=True)

    collection_names: List[str] = Field(default_factory=list, alias="collectionNames")
    specific_user_id: Optional[str] = Field(default=None, alias="specificUserId")
    custom_retention_days: int = Field(default=30, ge=0, alias="customRetentionDays")

    @field_validator("custom_retention_days", mode="before")
    @classmethod
    def truncate_fractional_days(cls, v):
        """Fractional day counts are truncated toward zero."""
        if isinstance(v, float) and math.isfinite(v):
            return int(v)
        return v


class ManualCleanupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deleted_records: Dict[str, int] = Field(default_factory=dict, alias="deletedRecords")


class CleanupRunStats(BaseModel):
    """Counts from one scheduled cleanup run."""
    retention_days: int
    cutoff: datetime
    deleted_by_collection: Dict[str, int] = Field(default_factory=dict)
    user_activities_archived: int = 0

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted_by_collection.values()) + self.user_activities_archived


class RetentionSchedulerStatus(BaseModel):
    running: bool
    interval_seconds: int
    task_created: bool
    last_run_at: Optional[datetime] = None
    last_stats: Optional[CleanupRunStats] = None
