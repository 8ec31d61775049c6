"""
Lead Job Queue.

Hands uploaded recordings from the API to the lead processor worker.
The request path only enqueues and acknowledges; extraction and scoring
run later as an independent unit of work.

Uses a Redis list as a FIFO queue and a hash per job for status.
"""

from __future__ import annotations

import json
import time
import uuid
from enum import Enum
from typing import Any, Optional

import redis.asyncio as aioredis
from pydantic import BaseModel, Field

from src.logging_config import get_logger

logger = get_logger(__name__)

# Redis keys
JOB_QUEUE_KEY = "leads:jobs"        # List (LPUSH / BRPOP)
JOB_STATE_KEY = "leads:job:{}"      # Hash per job
JOB_STATE_TTL_SECONDS = 7 * 24 * 3600


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class LeadJob(BaseModel):
    """One uploaded recording waiting to be turned into a lead."""

    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    booth_id: Optional[str] = None
    storage_path: str
    source_url: str
    filename: str
    mimetype: str = "application/octet-stream"
    retry_count: int = 0


class LeadJobQueue:
    """Redis-backed FIFO of pending audio jobs."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    @classmethod
    def from_url(cls, redis_url: str) -> LeadJobQueue:
        return cls(aioredis.from_url(redis_url, decode_responses=True))

    async def close(self) -> None:
        await self._redis.close()

    async def enqueue(self, job: LeadJob) -> str:
        await self.set_status(
            job.job_id,
            JobStatus.QUEUED,
            booth_id=job.booth_id or "",
            source_url=job.source_url,
            retry_count=job.retry_count,
        )
        await self._redis.lpush(JOB_QUEUE_KEY, job.model_dump_json())

        logger.info(
            "lead_job_enqueued",
            job_id=job.job_id,
            booth_id=job.booth_id,
            retry_count=job.retry_count,
        )
        return job.job_id

    async def dequeue(self, timeout: float = 5.0) -> LeadJob | None:
        """Block up to ``timeout`` seconds for the oldest job."""
        item = await self._redis.brpop([JOB_QUEUE_KEY], timeout=timeout)
        if not item:
            return None

        _, raw = item
        try:
            return LeadJob.model_validate_json(raw)
        except ValueError as e:
            logger.error("lead_job_malformed", payload=raw, error=str(e))
            return None

    async def set_status(self, job_id: str, status: JobStatus, **fields: Any) -> None:
        key = JOB_STATE_KEY.format(job_id)
        mapping = {"status": status.value, "updated_at": time.time()}
        for name, value in fields.items():
            # redis-py only accepts str, bytes and numbers (not bool)
            if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                mapping[name] = value
            else:
                mapping[name] = json.dumps(value)
        await self._redis.hset(key, mapping=mapping)
        await self._redis.expire(key, JOB_STATE_TTL_SECONDS)

    async def get_status(self, job_id: str) -> dict[str, Any] | None:
        state = await self._redis.hgetall(JOB_STATE_KEY.format(job_id))
        return state or None

    async def queue_size(self) -> int:
        return await self._redis.llen(JOB_QUEUE_KEY)
