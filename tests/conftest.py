"""
Shared fixtures for lead capture tests.
"""

import pytest

from src.schemas.extraction import CardExtraction, TranscriptionResult
from src.schemas.lead import CandidateFields, ExtractionMetadata, TranscriptSegment, TranscriptWord


@pytest.fixture
def full_fields():
    """All five contact fields, valid email."""
    return CandidateFields(
        name="Jane Smith",
        email="jane@x.com",
        phone="+1234567890",
        company="Acme",
        interest="CTO",
    )


@pytest.fixture
def steady_metadata():
    """8s clip, 4 segments of 15 chars, 20 words (2.5 words/s)."""
    return ExtractionMetadata(
        duration_seconds=8.0,
        language_code="en",
        segments=[
            TranscriptSegment(text="a" * 15, start_seconds=i * 2.0, end_seconds=i * 2.0 + 2.0)
            for i in range(4)
        ],
        words=[TranscriptWord(text="word", timestamp=i * 0.4) for i in range(20)],
    )


@pytest.fixture
def long_transcript():
    return (
        "Hi, I'm Jane Smith, CTO at Acme. You can reach me at jane@x.com "
        "or on +1234567890. We're evaluating badge scanners for Q3."
    )


@pytest.fixture
def verbose_transcription(long_transcript):
    """A verbose transcription with healthy acoustic metadata."""
    return TranscriptionResult(
        text=long_transcript,
        duration_seconds=8.0,
        language_code="english",
        segments=[TranscriptSegment(text="a" * 15) for _ in range(4)],
        words=[TranscriptWord(text="word", timestamp=i * 0.4) for i in range(20)],
    )


@pytest.fixture
def sparse_card():
    """Name and company only, 40 characters of OCR text."""
    return CardExtraction(
        name="John",
        company="Tech Inc",
        ocr_text="John\nTech Inc\nInnovation Drive, Suite 42",
    )
