"""
Unit tests for caller identity and the admin authorization gate.
"""
import pytest
from unittest.mock import MagicMock, patch

from app.core.errors import PermissionDeniedError, UnauthenticatedError
from app.core.platform_admin import is_admin, require_admin


def mock_user_row(mock_db, rows):
    mock_response = MagicMock()
    mock_response.data = rows
    mock_db.client.table.return_value.select.return_value.eq.return_value.execute.return_value = mock_response


class TestIsAdmin:

    @pytest.mark.unit
    def test_admin_flag_grants_access(self):
        with patch("app.core.platform_admin.db_service") as mock_db:
            mock_user_row(mock_db, [{"id": "u1", "is_admin": True, "role": "user"}])
            assert is_admin("u1") is True

    @pytest.mark.unit
    def test_admin_role_grants_access(self):
        with patch("app.core.platform_admin.db_service") as mock_db:
            mock_user_row(mock_db, [{"id": "u1", "role": "admin"}])
            assert is_admin("u1") is True

    @pytest.mark.unit
    def test_other_role_is_denied(self):
        with patch("app.core.platform_admin.db_service") as mock_db:
            mock_user_row(mock_db, [{"id": "u1", "role": "user"}])
            assert is_admin("u1") is False
            assert is_admin("u1", required_roles=("user",)) is True

    @pytest.mark.unit
    def test_missing_user_is_denied(self):
        with patch("app.core.platform_admin.db_service") as mock_db:
            mock_user_row(mock_db, [])
            assert is_admin("ghost") is False

    @pytest.mark.unit
    def test_lookup_error_is_denied(self):
        with patch("app.core.platform_admin.db_service") as mock_db:
            mock_db.client.table.side_effect = Exception("DB error")
            assert is_admin("u1") is False

    @pytest.mark.unit
    def test_empty_user_id_is_denied_without_lookup(self):
        with patch("app.core.platform_admin.db_service") as mock_db:
            assert is_admin("") is False
            mock_db.client.table.assert_not_called()


class TestRequireAdmin:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_identity_is_unauthenticated(self):
        dependency = require_admin()

        with pytest.raises(UnauthenticatedError):
            await dependency(user_info={"user": {}})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_admin_is_denied(self):
        dependency = require_admin()

        with patch("app.core.platform_admin.is_admin", return_value=False):
            with pytest.raises(PermissionDeniedError):
                await dependency(user_info={"user": {"id": "u1"}})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_admin_passes_through(self):
        dependency = require_admin()

        with patch("app.core.platform_admin.is_admin", return_value=True):
            result = await dependency(user_info={"user": {"id": "u1"}})

        assert result["is_admin"] is True
        assert result["actor_user_id"] == "u1"
