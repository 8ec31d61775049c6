"""
Data models for captured leads and the signal they are built from.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

CONTACT_FIELDS = ("name", "email", "phone", "company", "interest")


class LeadType(str, Enum):
    VOICE = "voice"
    IMAGE = "image"
    MANUAL = "manual"


class CaptureMode(str, Enum):
    AI = "ai"
    MANUAL = "manual"


def coerce_text(value: Any) -> Optional[str]:
    """
    Normalize a candidate value coming from a model response.

    Strings are trimmed and blank strings become ``None``. Numbers are
    stringified (vision models like to return phone numbers as ints).
    Anything else is treated as absent.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _coerce_seconds(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN fails every comparison
    if not seconds >= 0.0:
        return 0.0
    return seconds


def _valid_items(value: Any, model: type[BaseModel]) -> list[Any]:
    """Keep the items of ``value`` that validate as ``model``; drop the rest."""
    if not isinstance(value, (list, tuple)):
        return []
    items = []
    for item in value:
        try:
            items.append(model.model_validate(item))
        except ValidationError:
            continue
    return items


class CandidateFields(BaseModel):
    """Best-effort contact values produced by an extraction model, not yet trusted."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    interest: Optional[str] = None

    @field_validator(*CONTACT_FIELDS, mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Optional[str]:
        return coerce_text(value)

    @classmethod
    def from_mapping(cls, data: Any) -> CandidateFields:
        """Build from an untrusted JSON object; non-mappings yield all-absent fields."""
        if not isinstance(data, dict):
            return cls()
        return cls(**{key: data.get(key) for key in CONTACT_FIELDS})

    def present(self) -> dict[str, str]:
        """Return the non-absent fields in canonical order."""
        values = {key: getattr(self, key) for key in CONTACT_FIELDS}
        return {key: value for key, value in values.items() if value is not None}


class TranscriptSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    start_seconds: float = 0.0
    end_seconds: float = 0.0


class TranscriptWord(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    timestamp: float = 0.0


class ExtractionMetadata(BaseModel):
    """Acoustic metadata returned alongside a verbose transcription."""

    model_config = ConfigDict(frozen=True)

    duration_seconds: float = 0.0
    language_code: str = ""
    segments: list[TranscriptSegment] = Field(default_factory=list)
    words: list[TranscriptWord] = Field(default_factory=list)

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def _non_negative_duration(cls, value: Any) -> float:
        return _coerce_seconds(value)

    @field_validator("language_code", mode="before")
    @classmethod
    def _language(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("segments", mode="before")
    @classmethod
    def _drop_malformed_segments(cls, value: Any) -> list[Any]:
        return _valid_items(value, TranscriptSegment)

    @field_validator("words", mode="before")
    @classmethod
    def _drop_malformed_words(cls, value: Any) -> list[Any]:
        return _valid_items(value, TranscriptWord)


class FallbackDecision(BaseModel):
    """Whether low confidence forced partial signal into free-text remarks."""

    model_config = ConfigDict(frozen=True)

    triggered: bool
    remarks: Optional[str] = None

    @model_validator(mode="after")
    def _remarks_require_trigger(self) -> FallbackDecision:
        if self.remarks is not None and not self.triggered:
            raise ValueError("remarks can only be set when the fallback is triggered")
        return self


class Lead(BaseModel):
    """Assembled lead record. Identifiers and persistence belong to the caller."""

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
    type: LeadType
    capture_mode: CaptureMode = CaptureMode.MANUAL
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    remarks: Optional[str] = None
    status: str = "new"

    def to_record(self) -> dict[str, Any]:
        """Serialize for the ``leads`` table."""
        return self.model_dump(mode="json")
