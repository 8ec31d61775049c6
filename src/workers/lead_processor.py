"""
Lead Processor Worker.

Consumes queued booth recordings: downloads the audio, transcribes and
extracts contact fields, scores the extraction, preserves low-confidence
signal in remarks, and persists the resulting lead.

Start with:
    python -m src.workers.lead_processor
"""

from __future__ import annotations

import asyncio
import signal

from dotenv import load_dotenv
load_dotenv(".env.local")

from src.config import get_settings
from src.db import DatabaseClient, get_db
from src.logging_config import get_logger, job_context, setup_logging
from src.services.extraction_client import ExtractionServiceError, OpenAIExtractionClient
from src.services.job_queue import JobStatus, LeadJob, LeadJobQueue
from src.services.lead_pipeline import LeadPipeline
from src.services.storage import ArtifactStorage, StorageError

logger = get_logger(__name__)

# How long one blocking dequeue waits before the loop re-checks _running
POLL_INTERVAL = 5.0


class LeadProcessorWorker:
    """
    Turns queued recordings into persisted leads.

    Flow:
    1. Pop the oldest job from the Redis queue
    2. Download the recording and sign a temporary URL for it
    3. Transcribe, extract, score and compose remarks
    4. Insert the lead and mark the job completed

    Extraction and storage failures are retried up to
    ``max_retry_attempts`` before the job is marked failed.
    """

    def __init__(
        self,
        queue: LeadJobQueue,
        storage: ArtifactStorage,
        pipeline: LeadPipeline,
        db: DatabaseClient,
        max_retry_attempts: int = 3,
    ) -> None:
        self._queue = queue
        self._storage = storage
        self._pipeline = pipeline
        self._db = db
        self._max_retry_attempts = max_retry_attempts
        self._running = False

    async def start(self) -> None:
        self._running = True
        logger.info("lead_processor_started", poll_interval=POLL_INTERVAL)

        try:
            while self._running:
                try:
                    job = await self._queue.dequeue(timeout=POLL_INTERVAL)
                    if job is not None:
                        await self.process_job(job)
                except Exception as e:
                    logger.error("lead_processor_error", error=str(e))
                    await asyncio.sleep(POLL_INTERVAL)
        finally:
            await self._close()

    async def stop(self) -> None:
        """Stop after the current job; connections close when the loop exits."""
        self._running = False
        logger.info("lead_processor_stopping")

    async def _close(self) -> None:
        await self._queue.close()
        await self._pipeline.aclose()
        logger.info("lead_processor_stopped")

    async def process_job(self, job: LeadJob) -> bool:
        """
        Process one job end to end.

        Returns True if a lead was persisted. The job has already left
        the queue, so any unexpected error still ends in a terminal status.
        """
        with job_context(job.job_id, job.booth_id):
            try:
                return await self._run_job(job)
            except Exception as e:
                logger.exception("job_internal_error", error=str(e))
                await self._mark_failed(job, str(e), "internal")
                return False

    async def _run_job(self, job: LeadJob) -> bool:
        await self._queue.set_status(job.job_id, JobStatus.PROCESSING, retry_count=job.retry_count)
        logger.info("processing_job", storage_path=job.storage_path, retry_count=job.retry_count)

        try:
            audio = await self._storage.download(job.storage_path)
            lead = await self._pipeline.process_audio(
                audio,
                booth_id=job.booth_id,
                filename=job.filename,
                mimetype=job.mimetype,
                source_url=job.source_url,
                raw_audio_url=await self._temporary_url(job.storage_path),
            )
        except (ExtractionServiceError, StorageError) as e:
            await self._retry_or_fail(job, e)
            return False

        row = await self._db.create_lead(lead)
        if row is None:
            logger.error("lead_persist_failed")
            await self._mark_failed(job, "Failed to persist lead", "persistence")
            return False

        await self._queue.set_status(
            job.job_id,
            JobStatus.COMPLETED,
            lead_id=str(row.get("id", "")),
            confidence=lead.confidence,
            fallback_triggered=lead.remarks is not None,
        )
        logger.info(
            "job_completed",
            lead_id=row.get("id"),
            confidence=lead.confidence,
            has_remarks=lead.remarks is not None,
        )
        return True

    async def _mark_failed(self, job: LeadJob, error: str, error_type: str) -> None:
        try:
            await self._queue.set_status(job.job_id, JobStatus.FAILED, error=error, error_type=error_type)
        except Exception as e:
            # Redis unreachable; the state hash keeps its last value until it expires
            logger.error("job_status_update_failed", error_type=error_type, error=str(e))

    async def _temporary_url(self, path: str) -> str | None:
        # A missing temporary link is not worth losing the lead over
        try:
            return await self._storage.temporary_url(path)
        except StorageError as e:
            logger.warning("temporary_url_unavailable", path=path, error=str(e))
            return None

    async def _retry_or_fail(self, job: LeadJob, error: Exception) -> None:
        error_type = "extraction" if isinstance(error, ExtractionServiceError) else "storage"

        if job.retry_count < self._max_retry_attempts:
            retry = job.model_copy(update={"retry_count": job.retry_count + 1})
            await self._queue.enqueue(retry)
            logger.warning(
                "job_retry_scheduled",
                error_type=error_type,
                retry_count=retry.retry_count,
                error=str(error),
            )
            return

        await self._mark_failed(job, str(error), error_type)
        logger.error("job_failed", error_type=error_type, retry_count=job.retry_count, error=str(error))


def build_worker() -> LeadProcessorWorker:
    settings = get_settings()
    db = get_db()
    return LeadProcessorWorker(
        queue=LeadJobQueue.from_url(settings.redis_url),
        storage=ArtifactStorage(db.client, settings.storage_bucket, settings.temporary_url_ttl_seconds),
        pipeline=LeadPipeline(
            OpenAIExtractionClient.from_settings(settings),
            threshold=settings.lead_confidence_threshold,
        ),
        db=db,
        max_retry_attempts=settings.max_retry_attempts,
    )


async def main() -> None:
    setup_logging()
    worker = build_worker()

    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("shutdown_signal_received")
        asyncio.ensure_future(worker.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_handler)
        except NotImplementedError:
            pass

    try:
        await worker.start()
    except KeyboardInterrupt:
        await worker.stop()


if __name__ == "__main__":
    asyncio.run(main())
