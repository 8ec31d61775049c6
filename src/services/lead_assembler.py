"""
Lead Assembler.

Combines extractor output, the confidence score and the fallback
decision into the Lead shape. Contact fields are copied regardless of
confidence tier; low-confidence values are additionally kept in remarks.
"""

from __future__ import annotations

from typing import Optional

from src.schemas.extraction import CardExtraction, TranscriptionResult
from src.schemas.lead import CandidateFields, CaptureMode, FallbackDecision, Lead, LeadType


def _contact_values(fields: Optional[CandidateFields]) -> dict[str, Optional[str]]:
    if fields is None:
        fields = CandidateFields()
    return {
        "name": fields.name,
        "email": fields.email,
        "phone": fields.phone,
        "company": fields.company,
        "interest": fields.interest,
    }


def assemble_voice_lead(
    *,
    booth_id: Optional[str],
    transcription: TranscriptionResult,
    fields: Optional[CandidateFields],
    confidence: float,
    decision: FallbackDecision,
    source_url: Optional[str],
    raw_audio_url: Optional[str] = None,
) -> Lead:
    return Lead(
        booth_id=booth_id,
        **_contact_values(fields),
        transcript=transcription.text or None,
        source=source_url,
        raw_audio_url=raw_audio_url,
        type=LeadType.VOICE,
        capture_mode=CaptureMode.AI,
        confidence=confidence,
        remarks=decision.remarks,
    )


def assemble_image_lead(
    *,
    booth_id: Optional[str],
    extraction: CardExtraction,
    confidence: float,
    decision: FallbackDecision,
    source_url: Optional[str],
) -> Lead:
    return Lead(
        booth_id=booth_id,
        **_contact_values(extraction.fields()),
        ocr_text=extraction.ocr_text,
        source=source_url,
        type=LeadType.IMAGE,
        capture_mode=CaptureMode.AI,
        confidence=confidence,
        remarks=decision.remarks,
    )
