"""
Confidence Scoring.

Turns candidate contact fields plus acoustic metadata into a bounded
[0, 1] quality score. Field presence dominates; duration, segmentation
and speech rate act as secondary correctors. Pure and deterministic,
with no I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from src.schemas.lead import CONTACT_FIELDS, CandidateFields, ExtractionMetadata

DEFAULT_THRESHOLD = 0.6

FIELD_COUNT = len(CONTACT_FIELDS)
EMAIL_BONUS = 0.5
SHORT_TEXT_LENGTH = 20
SHORT_TEXT_PENALTY = 1.0
SHORT_AUDIO_SECONDS = 2.0
SHORT_AUDIO_PENALTY = 0.5
SEGMENT_LENGTH_FLOOR = 10
SEGMENT_BONUS = 0.3
SPEECH_RATE_RANGE = (1.5, 4.0)  # words per second
SPEECH_RATE_BONUS = 0.2
# Normalization headroom above the field count
METADATA_HEADROOM = 1.5
TEXT_ONLY_HEADROOM = EMAIL_BONUS

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def present_value(value: Any) -> Optional[str]:
    """Return the trimmed value if it is a non-blank string, else ``None``."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def is_valid_email(value: Any) -> bool:
    email = present_value(value)
    return email is not None and EMAIL_PATTERN.match(email) is not None


@dataclass
class ScoreBreakdown:
    """Raw score, normalization and the adjustments that produced them."""

    raw_score: float
    max_score: float
    confidence: float
    adjustments: list[tuple[str, float]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw_score": round(self.raw_score, 4),
            "max_score": self.max_score,
            "confidence": round(self.confidence, 4),
            "adjustments": [{"reason": reason, "delta": delta} for reason, delta in self.adjustments],
        }


def score_breakdown(
    fields: Optional[CandidateFields],
    raw_text: Optional[str],
    metadata: Optional[ExtractionMetadata] = None,
) -> ScoreBreakdown:
    """Score an extraction and keep track of every adjustment applied."""
    adjustments: list[tuple[str, float]] = []

    for key in CONTACT_FIELDS:
        if present_value(getattr(fields, key, None)) is not None:
            adjustments.append((f"{key}_present", 1.0))

    if is_valid_email(getattr(fields, "email", None)):
        adjustments.append(("email_valid", EMAIL_BONUS))

    text = raw_text if isinstance(raw_text, str) else ""
    if len(text) < SHORT_TEXT_LENGTH:
        adjustments.append(("short_text", -SHORT_TEXT_PENALTY))

    if metadata is not None:
        duration = metadata.duration_seconds
        if duration < SHORT_AUDIO_SECONDS:
            adjustments.append(("short_audio", -SHORT_AUDIO_PENALTY))

        if metadata.segments:
            mean_length = sum(len(s.text) for s in metadata.segments) / len(metadata.segments)
            if mean_length > SEGMENT_LENGTH_FLOOR:
                adjustments.append(("long_segments", SEGMENT_BONUS))

        if duration > 0:
            words_per_second = len(metadata.words) / duration
            low, high = SPEECH_RATE_RANGE
            if low <= words_per_second <= high:
                adjustments.append(("natural_speech_rate", SPEECH_RATE_BONUS))

        max_score = FIELD_COUNT + METADATA_HEADROOM
    else:
        max_score = FIELD_COUNT + TEXT_ONLY_HEADROOM

    raw_score = sum(delta for _, delta in adjustments)
    confidence = min(max(raw_score / max_score, 0.0), 1.0)

    return ScoreBreakdown(
        raw_score=raw_score,
        max_score=max_score,
        confidence=confidence,
        adjustments=adjustments,
    )


def score(
    fields: Optional[CandidateFields],
    raw_text: Optional[str],
    metadata: Optional[ExtractionMetadata] = None,
) -> float:
    """Return the clamped confidence for one extraction attempt."""
    return score_breakdown(fields, raw_text, metadata).confidence
