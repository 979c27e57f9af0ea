"""
Auth Service

Resolves the calling user from a Supabase access token.
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import UnauthenticatedError
from app.services.database import db_service

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    FastAPI dependency returning ``{"user": {"id", "email"}}`` for the bearer token.

    Raises:
        UnauthenticatedError: No token, or Supabase rejected it.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    try:
        response = db_service.client.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise UnauthenticatedError("Invalid or expired token")

    user = getattr(response, "user", None)
    if user is None or not getattr(user, "id", None):
        raise UnauthenticatedError("Invalid or expired token")

    return {"user": {"id": user.id, "email": getattr(user, "email", None)}}
