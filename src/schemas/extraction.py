"""
Boundary records for raw responses from the extraction services.

Model output is parsed and defaulted here exactly once, so the scoring
core can assume a canonical shape.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from src.schemas.lead import (
    CandidateFields,
    ExtractionMetadata,
    TranscriptSegment,
    TranscriptWord,
    coerce_text,
)


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class TranscriptionResult(BaseModel):
    """What the transcription service returned for one audio clip."""

    text: str = ""
    duration_seconds: Optional[float] = None
    language_code: Optional[str] = None
    segments: Optional[list[TranscriptSegment]] = None
    words: Optional[list[TranscriptWord]] = None

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @classmethod
    def from_api(cls, payload: Any) -> TranscriptionResult:
        """
        Parse a ``verbose_json`` transcription payload.

        Every field except ``text`` is optional; plain ``json`` responses
        (text only) produce a result without metadata.
        """
        if not isinstance(payload, dict):
            return cls()

        segments = None
        if isinstance(payload.get("segments"), list):
            segments = [
                TranscriptSegment(
                    text=item["text"],
                    start_seconds=_as_float(item.get("start")) or 0.0,
                    end_seconds=_as_float(item.get("end")) or 0.0,
                )
                for item in payload["segments"]
                if isinstance(item, dict) and isinstance(item.get("text"), str)
            ]

        words = None
        if isinstance(payload.get("words"), list):
            words = [
                TranscriptWord(
                    text=item["word"],
                    timestamp=_as_float(item.get("start")) or 0.0,
                )
                for item in payload["words"]
                if isinstance(item, dict) and isinstance(item.get("word"), str)
            ]

        language = payload.get("language")
        return cls(
            text=payload.get("text"),
            duration_seconds=_as_float(payload.get("duration")),
            language_code=language if isinstance(language, str) else None,
            segments=segments,
            words=words,
        )

    def metadata(self) -> Optional[ExtractionMetadata]:
        """
        Acoustic metadata for scoring, or ``None`` when the backend did
        not return verbose output (no duration).
        """
        if self.duration_seconds is None:
            return None
        return ExtractionMetadata(
            duration_seconds=self.duration_seconds,
            language_code=self.language_code or "",
            segments=self.segments or [],
            words=self.words or [],
        )


class CardExtraction(BaseModel):
    """Candidate fields plus the free-text OCR dump read from a business card."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    interest: Optional[str] = None
    ocr_text: Optional[str] = Field(default=None)

    @field_validator("name", "email", "phone", "company", "interest", "ocr_text", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Optional[str]:
        return coerce_text(value)

    @classmethod
    def from_api(cls, payload: Any) -> CardExtraction:
        if not isinstance(payload, dict):
            return cls()
        return cls(
            name=payload.get("name"),
            email=payload.get("email"),
            phone=payload.get("phone"),
            company=payload.get("company"),
            interest=payload.get("interest"),
            ocr_text=payload.get("ocrText", payload.get("ocr_text")),
        )

    def fields(self) -> CandidateFields:
        return CandidateFields(
            name=self.name,
            email=self.email,
            phone=self.phone,
            company=self.company,
            interest=self.interest,
        )
