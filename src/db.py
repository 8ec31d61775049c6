"""
Supabase Database Client.

Typed helpers for the ``leads`` table. The client is constructed
explicitly; ``get_db()`` caches one instance for the API and workers,
and tests build their own around a mock Supabase client.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from src.config import get_settings
from src.logging_config import get_logger
from src.schemas.lead import Lead

logger = get_logger(__name__)

LEADS_TABLE = "leads"


class DatabaseClient:
    """Wrapper around the official Supabase Python client."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        """Access the raw Supabase client."""
        return self._client

    async def create_lead(self, lead: Lead) -> dict[str, Any] | None:
        """Insert a lead record and return the stored row."""
        try:
            response = self.client.table(LEADS_TABLE).insert(lead.to_record()).execute()
            if response.data:
                return response.data[0]
            return None
        except Exception as e:
            logger.error("Error creating lead", booth_id=lead.booth_id, error=str(e))
            return None

    async def get_lead(self, lead_id: str) -> dict[str, Any] | None:
        """Fetch a lead by id."""
        try:
            response = (
                self.client.table(LEADS_TABLE)
                .select("*")
                .eq("id", lead_id)
                .single()
                .execute()
            )
            return response.data
        except Exception as e:
            logger.error("Error fetching lead", id=lead_id, error=str(e))
            return None


def create_supabase_client() -> Client:
    settings = get_settings()

    if not settings.supabase_url or not settings.supabase_service_key:
        logger.warning(
            "Supabase credentials missing. Database and storage operations will fail.",
            url=bool(settings.supabase_url),
            key=bool(settings.supabase_service_key),
        )

    client = create_client(settings.supabase_url, settings.supabase_service_key)
    logger.info("Supabase client initialized", url=settings.supabase_url)
    return client


@lru_cache(maxsize=1)
def get_db() -> DatabaseClient:
    return DatabaseClient(create_supabase_client())
