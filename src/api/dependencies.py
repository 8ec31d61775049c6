"""
FastAPI dependency providers.

Each collaborator is built once from settings and handed to routes via
``Depends`` so tests can swap them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from src.config import get_settings
from src.db import DatabaseClient, get_db
from src.services.extraction_client import OpenAIExtractionClient
from src.services.job_queue import LeadJobQueue
from src.services.lead_pipeline import LeadPipeline
from src.services.storage import ArtifactStorage


def get_database() -> DatabaseClient:
    return get_db()


@lru_cache(maxsize=1)
def get_storage() -> ArtifactStorage:
    settings = get_settings()
    return ArtifactStorage(
        get_db().client,
        settings.storage_bucket,
        settings.temporary_url_ttl_seconds,
    )


@lru_cache(maxsize=1)
def get_job_queue() -> LeadJobQueue:
    return LeadJobQueue.from_url(get_settings().redis_url)


@lru_cache(maxsize=1)
def get_pipeline() -> LeadPipeline:
    settings = get_settings()
    return LeadPipeline(
        OpenAIExtractionClient.from_settings(settings),
        threshold=settings.lead_confidence_threshold,
    )


async def close_dependencies() -> None:
    """Close whichever cached clients were created, so a restart builds fresh ones."""
    if get_job_queue.cache_info().currsize:
        await get_job_queue().close()
        get_job_queue.cache_clear()

    if get_pipeline.cache_info().currsize:
        await get_pipeline().aclose()
        get_pipeline.cache_clear()
