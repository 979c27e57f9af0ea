"""
Unit tests for the Data Retention Service entry points.
"""
import pytest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from app.core.errors import InternalCleanupError, PermissionDeniedError, UnauthenticatedError
from app.schemas.retention import ManualCleanupRequest
from app.services.retention_service import DataRetentionService
from tests.testkit import NOW, days_ago


ADMIN_ID = "admin-user"


def make_service(store, authorizer=None, **kwargs) -> DataRetentionService:
    return DataRetentionService(
        store=store,
        batch_size=kwargs.pop("batch_size", 100),
        batch_pause_seconds=0,
        user_pause_seconds=0,
        clock=lambda: NOW,
        authorizer=authorizer or (lambda user_id: user_id == ADMIN_ID),
        **kwargs,
    )


class TestComputeCutoff:

    @pytest.mark.unit
    def test_cutoff_is_exact_window_before_now(self, store):
        service = make_service(store)

        assert service.compute_cutoff(7) == NOW - timedelta(days=7)
        assert service.compute_cutoff(30, now=NOW + timedelta(days=1)) == NOW - timedelta(days=29)


class TestManualCleanup:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unauthenticated_caller_is_rejected(self, store):
        store.add_records("activities", [days_ago(90)])
        service = make_service(store)

        with pytest.raises(UnauthenticatedError) as exc_info:
            await service.manual_cleanup(
                ManualCleanupRequest(collection_names=["activities"]), caller_id=None
            )

        assert exc_info.value.status_code == 401
        assert store.mutation_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_admin_caller_performs_no_mutations(self, store):
        store.add_records("activities", [days_ago(90)])
        store.add_activities("user-1", [("A", days_ago(90))])
        service = make_service(store)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await service.manual_cleanup(
                ManualCleanupRequest(collection_names=["activities"], specific_user_id="user-1"),
                caller_id="regular-user",
            )

        assert exc_info.value.status_code == 403
        assert store.mutation_count == 0
        assert len(store.collections["activities"]) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_custom_window_purges_collections_and_user(self, store):
        store.add_records("aiMessages", [days_ago(7.5), days_ago(6.5)])
        store.add_records("contributions", [days_ago(10), days_ago(20)])
        store.add_activities("user-1", [("A", days_ago(8)), ("B", days_ago(9)), ("A", days_ago(1))])
        service = make_service(store)

        response = await service.manual_cleanup(
            ManualCleanupRequest(
                collection_names=["aiMessages", "contributions"],
                specific_user_id="user-1",
                custom_retention_days=7,
            ),
            caller_id=ADMIN_ID,
        )

        assert response.deleted_records == {"aiMessages": 1, "contributions": 2, "userActivities": 2}
        # Summary keyed by the month of now - 7 days
        assert store.summary("user-1", "2024-06")["total_activities"] == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_default_request_does_nothing(self, store):
        store.add_records("activities", [days_ago(90)])
        service = make_service(store)

        response = await service.manual_cleanup(ManualCleanupRequest(), caller_id=ADMIN_ID)

        assert response.deleted_records == {}
        assert store.mutation_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_is_internal_and_not_rolled_back(self, store):
        store.add_records("activities", [days_ago(90)] * 3)
        store.add_records("contributions", [days_ago(90)] * 3)
        service = make_service(store)
        original_find = store.find_older_than

        async def failing_find(collection, field, cutoff, limit):
            if collection == "contributions":
                raise RuntimeError("permission error from datastore")
            return await original_find(collection, field, cutoff, limit)

        store.find_older_than = failing_find

        with pytest.raises(InternalCleanupError) as exc_info:
            await service.manual_cleanup(
                ManualCleanupRequest(collection_names=["activities", "contributions"]),
                caller_id=ADMIN_ID,
            )

        error = exc_info.value
        assert error.status_code == 500
        assert isinstance(error.cause, RuntimeError)
        assert error.__cause__ is error.cause
        assert error.detail["error"] == "internal"
        # Earlier target stays purged
        assert store.collections["activities"] == {}
        assert len(store.collections["contributions"]) == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_default_authorizer(self, store):
        service = DataRetentionService(store=store, clock=lambda: NOW)

        with patch("app.core.platform_admin.db_service") as mock_db:
            mock_response = MagicMock()
            mock_response.data = [{"id": "u1", "is_admin": False, "role": "user"}]
            mock_db.client.table.return_value.select.return_value.eq.return_value.execute.return_value = mock_response

            with pytest.raises(PermissionDeniedError):
                await service.manual_cleanup(ManualCleanupRequest(), caller_id="u1")

        mock_db.client.table.assert_called_once_with("users")
        assert store.mutation_count == 0


class TestCleanupOldRecords:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_scheduled_run_uses_fixed_targets_and_window(self, store):
        for collection in ("activities", "contributions", "aiMessages", "projects"):
            store.add_records(collection, [days_ago(31), days_ago(29)])
        store.add_activities("user-1", [("A", days_ago(45)), ("B", days_ago(35))])
        store.add_activities("user-2", [("A", days_ago(10))])
        service = make_service(store, retention_days=30)

        stats = await service.cleanup_old_records()

        assert stats is not None
        assert stats.cutoff == NOW - timedelta(days=30)
        assert stats.deleted_by_collection == {"activities": 1, "contributions": 1, "aiMessages": 1}
        assert stats.user_activities_archived == 2
        assert stats.total_deleted == 5
        # Collections outside the fixed set are untouched
        assert len(store.collections["projects"]) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_scheduled_window_differs_from_manual(self, store):
        service = make_service(store, retention_days=30)

        stats = await service.cleanup_old_records()

        assert stats.cutoff == NOW - timedelta(days=30)
        assert service.compute_cutoff(7) != stats.cutoff

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_scheduled_run_swallows_datastore_errors(self, store):
        store.add_records("activities", [days_ago(90)])
        store.failures["delete_batch"] = RuntimeError("datastore down")
        service = make_service(store)

        stats = await service.cleanup_old_records()

        assert stats is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_scheduled_run_swallows_archiver_errors(self, store):
        store.add_activities("user-1", [("A", days_ago(90))])
        store.failures["list_user_ids"] = RuntimeError("users unavailable")
        service = make_service(store)

        assert await service.cleanup_old_records() is None
