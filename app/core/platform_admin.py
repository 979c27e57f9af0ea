import logging
from typing import Iterable

from fastapi import Depends

from app.core.config import settings
from app.core.errors import PermissionDeniedError, UnauthenticatedError
from app.services.auth_service import get_current_user
from app.services.database import db_service

logger = logging.getLogger(__name__)


def is_admin(user_id: str, required_roles: Iterable[str] = ("admin",)) -> bool:
    """True when the user row carries ``is_admin`` or one of ``required_roles``."""
    if not user_id:
        return False
    try:
        resp = (
            db_service.client.table(settings.USERS_TABLE)
            .select("id, is_admin, role")
            .eq("id", user_id)
            .execute()
        )
    except Exception as e:
        logger.error(f"Error validating authorization for user {user_id}: {e}", exc_info=True)
        return False

    if not resp.data:
        logger.warning(f"User {user_id} does not exist but attempted authorization check")
        return False

    row = resp.data[0]
    if row.get("is_admin") is True:
        return True
    return (row.get("role") or "user") in set(required_roles)


def caller_id(user_info: dict) -> str:
    return ((user_info or {}).get("user") or {}).get("id") or ""


def require_admin():
    async def dependency(user_info: dict = Depends(get_current_user)) -> dict:
        actor_id = caller_id(user_info)
        if not actor_id:
            raise UnauthenticatedError()

        if not is_admin(actor_id):
            raise PermissionDeniedError()

        return {**user_info, "is_admin": True, "actor_user_id": actor_id}

    return dependency
