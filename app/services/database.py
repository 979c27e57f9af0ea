"""
Database Service

Thin holder around the Supabase client. The client is created on first use so
importing the application never needs live credentials.
"""
import logging
from typing import Optional

from supabase import Client, create_client

from app.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseService:
    """Lazily-initialised Supabase client shared across services."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self._url = url
        self._key = key
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        if self._client is None:
            url = self._url or settings.SUPABASE_URL
            key = self._key or settings.SUPABASE_SERVICE_KEY
            logger.info(f"Creating Supabase client for {url}")
            self._client = create_client(url, key)
        return self._client

    @client.setter
    def client(self, value: Client) -> None:
        self._client = value


db_service = DatabaseService()
