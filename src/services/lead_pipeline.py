"""
Lead Pipeline.

Runs one complete capture through extraction, confidence scoring, the
fallback composer and the lead assembler. Voice and image captures
share the same scoring and fallback framework; only the extractor call
and the metadata differ.

The pipeline holds no state across calls; the extractor is injected.
"""

from __future__ import annotations

from typing import Optional, Protocol

from src.logging_config import get_logger
from src.schemas.extraction import CardExtraction, TranscriptionResult
from src.schemas.lead import CandidateFields, Lead
from src.services import confidence, fallback
from src.services.lead_assembler import assemble_image_lead, assemble_voice_lead

logger = get_logger(__name__)


class FieldExtractor(Protocol):
    async def transcribe(self, audio: bytes, filename: str, mimetype: str = ...) -> TranscriptionResult: ...

    async def extract_fields(self, transcript: str) -> CandidateFields: ...

    async def extract_card(self, image: bytes, mimetype: str = ...) -> CardExtraction: ...

    async def aclose(self) -> None: ...


class LeadPipeline:
    """Turns raw audio or card images into scored Lead records."""

    def __init__(
        self,
        extractor: FieldExtractor,
        threshold: float = confidence.DEFAULT_THRESHOLD,
    ) -> None:
        self.extractor = extractor
        self.threshold = threshold

    async def aclose(self) -> None:
        """Release the extractor's HTTP connections."""
        await self.extractor.aclose()

    async def process_audio(
        self,
        audio: bytes,
        *,
        booth_id: Optional[str],
        filename: str,
        mimetype: str = "application/octet-stream",
        source_url: Optional[str] = None,
        raw_audio_url: Optional[str] = None,
    ) -> Lead:
        transcription = await self.extractor.transcribe(audio, filename, mimetype)
        fields = await self.extractor.extract_fields(transcription.text)
        return self.build_voice_lead(
            transcription,
            fields,
            booth_id=booth_id,
            source_url=source_url,
            raw_audio_url=raw_audio_url,
        )

    async def process_image(
        self,
        image: bytes,
        *,
        booth_id: Optional[str],
        mimetype: str = "image/jpeg",
        source_url: Optional[str] = None,
    ) -> Lead:
        extraction = await self.extractor.extract_card(image, mimetype)
        return self.build_image_lead(extraction, booth_id=booth_id, source_url=source_url)

    def build_voice_lead(
        self,
        transcription: TranscriptionResult,
        fields: CandidateFields,
        *,
        booth_id: Optional[str],
        source_url: Optional[str] = None,
        raw_audio_url: Optional[str] = None,
    ) -> Lead:
        """Score and assemble an already-extracted voice capture."""
        score = confidence.score(fields, transcription.text, transcription.metadata())
        decision = fallback.compose(
            fields,
            transcription.text,
            score,
            self.threshold,
            text_label=fallback.TRANSCRIPT_LABEL,
        )
        lead = assemble_voice_lead(
            booth_id=booth_id,
            transcription=transcription,
            fields=fields,
            confidence=score,
            decision=decision,
            source_url=source_url,
            raw_audio_url=raw_audio_url,
        )
        self._log_scored(lead, decision.triggered)
        return lead

    def build_image_lead(
        self,
        extraction: CardExtraction,
        *,
        booth_id: Optional[str],
        source_url: Optional[str] = None,
    ) -> Lead:
        """Score and assemble an already-extracted business card."""
        fields = extraction.fields()
        score = confidence.score(fields, extraction.ocr_text)
        decision = fallback.compose(
            fields,
            extraction.ocr_text,
            score,
            self.threshold,
            text_label=fallback.OCR_TEXT_LABEL,
        )
        lead = assemble_image_lead(
            booth_id=booth_id,
            extraction=extraction,
            confidence=score,
            decision=decision,
            source_url=source_url,
        )
        self._log_scored(lead, decision.triggered)
        return lead

    def _log_scored(self, lead: Lead, fallback_triggered: bool) -> None:
        logger.info(
            "lead_scored",
            booth_id=lead.booth_id,
            lead_type=lead.type.value,
            confidence=round(lead.confidence or 0.0, 3),
            threshold=self.threshold,
            fallback_triggered=fallback_triggered,
            has_remarks=lead.remarks is not None,
        )
