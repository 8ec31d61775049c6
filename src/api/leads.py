"""
API Router: Lead Capture Endpoints.

Voice recordings are uploaded once and queued for background
processing; business cards are processed inline; hand-entered or
reviewed leads are saved through ``/capture``.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field, field_validator

from src.api.dependencies import get_database, get_job_queue, get_pipeline, get_storage
from src.config import get_settings
from src.db import DatabaseClient
from src.logging_config import get_logger
from src.schemas.lead import CaptureMode, Lead, LeadType, coerce_text
from src.services.extraction_client import ExtractionServiceError
from src.services.job_queue import LeadJob, LeadJobQueue
from src.services.lead_pipeline import LeadPipeline
from src.services.storage import AUDIO_FOLDER, CARD_FOLDER, ArtifactStorage, StorageError

logger = get_logger(__name__)
router = APIRouter(prefix="/leads", tags=["Leads"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}


class AudioAcceptedResponse(BaseModel):
    success: bool = True
    message: str = "Audio uploaded and queued for processing"
    source: str
    job_id: str


class LeadResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class LeadCaptureRequest(BaseModel):
    booth_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    interest: Optional[str] = None
    transcript: Optional[str] = None
    ocr_text: Optional[str] = None
    source: Optional[str] = None
    raw_audio_url: Optional[str] = None
    type: Optional[LeadType] = None
    capture_mode: CaptureMode = CaptureMode.MANUAL
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    remarks: Optional[str] = None

    @field_validator(
        "booth_id", "name", "email", "phone", "company", "interest",
        "transcript", "ocr_text", "source", "raw_audio_url", "remarks",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return coerce_text(value)


@router.post("/process-audio", status_code=202, response_model=AudioAcceptedResponse)
async def process_audio(
    audio: Optional[UploadFile] = File(default=None),
    booth_id: Optional[str] = Form(default=None),
    storage: ArtifactStorage = Depends(get_storage),
    queue: LeadJobQueue = Depends(get_job_queue),
) -> AudioAcceptedResponse:
    """Upload a booth recording once and queue it for extraction."""
    content = await audio.read() if audio else b""

    logger.info(
        "audio_upload_received",
        booth_id=booth_id,
        filename=audio.filename if audio else None,
        size=len(content),
        mimetype=audio.content_type if audio else None,
    )

    if not content:
        raise HTTPException(status_code=400, detail="Invalid or empty audio file")
    if not coerce_text(booth_id):
        raise HTTPException(status_code=400, detail="booth_id is required")

    filename = audio.filename or "recording"
    mimetype = audio.content_type or "application/octet-stream"

    try:
        artifact = await storage.upload(content, filename, mimetype, AUDIO_FOLDER)
        job_id = await queue.enqueue(
            LeadJob(
                booth_id=coerce_text(booth_id),
                storage_path=artifact.path,
                source_url=artifact.public_url,
                filename=filename,
                mimetype=mimetype,
            )
        )
    except StorageError as e:
        logger.error("audio_upload_error", booth_id=booth_id, error=str(e))
        raise HTTPException(status_code=500, detail="Audio upload failed")
    except Exception as e:
        logger.error("audio_enqueue_error", booth_id=booth_id, error=str(e))
        raise HTTPException(status_code=500, detail="Audio could not be queued")

    return AudioAcceptedResponse(source=artifact.public_url, job_id=job_id)


@router.get("/jobs/{job_id}")
async def get_job_status(
    job_id: str,
    queue: LeadJobQueue = Depends(get_job_queue),
) -> dict[str, Any]:
    """Report the processing status of a queued recording."""
    state = await queue.get_status(job_id)
    if not state:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"job_id": job_id, **state}


@router.post("/process-image", response_model=LeadResponse)
async def process_image(
    image: Optional[UploadFile] = File(default=None),
    booth_id: Optional[str] = Form(default=None),
    storage: ArtifactStorage = Depends(get_storage),
    pipeline: LeadPipeline = Depends(get_pipeline),
) -> LeadResponse:
    """Read a business card and return the scored lead for confirmation."""
    if image is None:
        raise HTTPException(status_code=400, detail="No image file")

    mimetype = image.content_type or ""
    if mimetype not in ALLOWED_IMAGE_TYPES:
        logger.warning("image_rejected_type", mimetype=mimetype)
        raise HTTPException(status_code=400, detail="Invalid file type. Only JPG, PNG, and WebP allowed")

    content = await image.read()
    max_bytes = get_settings().max_image_bytes
    if len(content) > max_bytes:
        logger.warning("image_rejected_size", size=len(content), max_size=max_bytes)
        raise HTTPException(status_code=400, detail=f"File too large. Max {max_bytes // (1024 * 1024)}MB")
    if not content:
        raise HTTPException(status_code=400, detail="No image file")

    try:
        artifact = await storage.upload(content, image.filename or "card.jpg", mimetype, CARD_FOLDER)
        lead = await pipeline.process_image(
            content,
            booth_id=coerce_text(booth_id),
            mimetype=mimetype,
            source_url=artifact.public_url,
        )
    except ExtractionServiceError as e:
        logger.error("image_extraction_error", booth_id=booth_id, error=str(e))
        raise HTTPException(status_code=502, detail=f"Failed to process business card: {e}")
    except StorageError as e:
        logger.error("image_upload_error", booth_id=booth_id, error=str(e))
        raise HTTPException(status_code=500, detail="Image upload failed")

    logger.info(
        "image_processed",
        booth_id=booth_id,
        confidence=lead.confidence,
        has_remarks=lead.remarks is not None,
    )
    return LeadResponse(data=lead.to_record())


@router.post("/capture", response_model=LeadResponse)
async def capture_lead(
    body: LeadCaptureRequest,
    db: DatabaseClient = Depends(get_database),
) -> LeadResponse:
    """Persist a lead entered by hand or confirmed after AI capture."""
    logger.info(
        "lead_capture_received",
        booth_id=body.booth_id,
        type=body.type.value if body.type else None,
        capture_mode=body.capture_mode.value,
        has_email=body.email is not None,
        has_phone=body.phone is not None,
        has_name=body.name is not None,
        confidence=body.confidence,
    )

    if not body.booth_id:
        raise HTTPException(status_code=400, detail="booth_id is required")

    if not any((body.name, body.email, body.phone, body.company, body.interest)):
        raise HTTPException(
            status_code=400,
            detail="Please provide some lead information (at least one field).",
        )

    lead = Lead(
        **body.model_dump(exclude={"type"}),
        type=body.type or LeadType.MANUAL,
    )

    row = await db.create_lead(lead)
    if row is None:
        raise HTTPException(status_code=500, detail="Failed to save lead. Please try again.")

    logger.info(
        "lead_captured",
        lead_id=row.get("id"),
        booth_id=lead.booth_id,
        type=lead.type.value,
        capture_mode=lead.capture_mode.value,
        confidence=lead.confidence,
    )
    return LeadResponse(data=row)


@router.get("/queue/stats")
async def get_queue_stats(queue: LeadJobQueue = Depends(get_job_queue)) -> dict[str, int]:
    """Number of recordings waiting for the lead processor."""
    return {"pending_jobs": await queue.queue_size()}


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: str,
    db: DatabaseClient = Depends(get_database),
) -> LeadResponse:
    """Fetch a stored lead, e.g. once a queued recording has completed."""
    row = await db.get_lead(lead_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return LeadResponse(data=row)
