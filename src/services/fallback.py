"""
Fallback Composer.

When confidence is below the threshold, every piece of partial signal
(raw transcript or OCR text, then each candidate field) is concatenated
into a free-text remarks payload so nothing is silently discarded.
"""

from __future__ import annotations

from typing import Optional

from src.schemas.lead import CONTACT_FIELDS, CandidateFields, FallbackDecision
from src.services.confidence import DEFAULT_THRESHOLD, present_value

SEPARATOR = " | "
TRANSCRIPT_LABEL = "Transcript"
OCR_TEXT_LABEL = "OCR Text"


def compose(
    fields: Optional[CandidateFields],
    raw_text: Optional[str],
    confidence: float,
    threshold: float = DEFAULT_THRESHOLD,
    *,
    text_label: str = TRANSCRIPT_LABEL,
) -> FallbackDecision:
    """
    Decide whether to preserve partial signal in remarks.

    Args:
        fields: Candidate fields from the extractor.
        raw_text: Full transcript (voice) or OCR dump (image).
        confidence: Score from ``confidence.score``.
        threshold: Scores at or above this pass fields through untouched.
        text_label: Prefix for the raw text line.

    Returns:
        A FallbackDecision. Triggered decisions with no salvageable signal
        carry ``remarks=None``.
    """
    if confidence >= threshold:
        return FallbackDecision(triggered=False, remarks=None)

    lines: list[str] = []

    if isinstance(raw_text, str) and raw_text.strip():
        lines.append(f"{text_label}: {raw_text}")

    for key in CONTACT_FIELDS:
        value = present_value(getattr(fields, key, None))
        if value is not None:
            lines.append(f"{key.capitalize()} (low confidence): {value}")

    return FallbackDecision(
        triggered=True,
        remarks=SEPARATOR.join(lines) if lines else None,
    )
