"""
Tests for lead and boundary data models.
"""

import pytest
from pydantic import ValidationError

from src.schemas.extraction import CardExtraction, TranscriptionResult
from src.schemas.lead import CandidateFields, ExtractionMetadata, FallbackDecision, Lead, LeadType


class TestCandidateFields:
    """Test cases for CandidateFields normalization."""

    def test_blank_strings_become_none(self):
        fields = CandidateFields(name="  ", email="", phone="\n", company=" Acme ", interest=None)

        assert fields.name is None
        assert fields.email is None
        assert fields.phone is None
        assert fields.company == "Acme"

    def test_numbers_are_stringified(self):
        assert CandidateFields(phone=15551234567).phone == "15551234567"

    def test_malformed_values_are_absent(self):
        fields = CandidateFields(name={"first": "Jane"}, email=["jane@x.com"], phone=True)

        assert fields.present() == {}

    def test_from_mapping(self):
        fields = CandidateFields.from_mapping({"name": "Jane", "email": None, "unexpected": "x"})

        assert fields.present() == {"name": "Jane"}

    def test_from_mapping_rejects_non_objects(self):
        assert CandidateFields.from_mapping(["Jane"]) == CandidateFields()
        assert CandidateFields.from_mapping(None) == CandidateFields()

    def test_is_immutable(self, full_fields):
        with pytest.raises(ValidationError):
            full_fields.name = "Someone Else"

    def test_present_keeps_canonical_order(self):
        fields = CandidateFields(interest="demo", name="Jane", company="Acme")

        assert list(fields.present()) == ["name", "company", "interest"]


class TestExtractionMetadata:
    """Test cases for ExtractionMetadata defaults."""

    @pytest.mark.parametrize("value", [-3, "soon", None, float("nan"), True])
    def test_bad_duration_becomes_zero(self, value):
        assert ExtractionMetadata(duration_seconds=value).duration_seconds == 0.0

    def test_malformed_items_are_dropped(self):
        metadata = ExtractionMetadata(
            duration_seconds=4,
            segments=[{"text": "hello there"}, {"text": 5}, "junk"],
            words=[{"text": "hello", "timestamp": 0.1}, {"timestamp": 0.4}],
        )

        assert [s.text for s in metadata.segments] == ["hello there"]
        assert [w.text for w in metadata.words] == ["hello"]

    def test_non_list_sequences_become_empty(self):
        metadata = ExtractionMetadata(segments="oops", words=None)

        assert metadata.segments == []
        assert metadata.words == []


class TestFallbackDecision:
    def test_remarks_require_trigger(self):
        with pytest.raises(ValidationError):
            FallbackDecision(triggered=False, remarks="something")

    def test_triggered_without_remarks_is_legal(self):
        assert FallbackDecision(triggered=True).remarks is None


class TestLead:
    def test_confidence_is_bounded(self):
        with pytest.raises(ValidationError):
            Lead(type=LeadType.VOICE, confidence=1.2)

    def test_to_record_uses_plain_values(self):
        record = Lead(type=LeadType.IMAGE, booth_id="b-1", confidence=0.7).to_record()

        assert record["type"] == "image"
        assert record["capture_mode"] == "manual"
        assert record["status"] == "new"


class TestTranscriptionResult:
    """Test cases for parsing transcription payloads."""

    def test_verbose_payload(self):
        result = TranscriptionResult.from_api({
            "text": "Hi, I'm Jane from Acme.",
            "language": "english",
            "duration": 3.2,
            "segments": [
                {"id": 0, "text": " Hi, I'm Jane", "start": 0.0, "end": 1.4},
                {"id": 1, "text": " from Acme.", "start": 1.4, "end": 3.2},
            ],
            "words": [
                {"word": "Hi", "start": 0.0, "end": 0.3},
                {"word": "I'm", "start": 0.4, "end": 0.6},
                {"word": "Jane", "start": 0.7, "end": 1.2},
            ],
        })

        metadata = result.metadata()
        assert result.text == "Hi, I'm Jane from Acme."
        assert metadata.duration_seconds == 3.2
        assert metadata.language_code == "english"
        assert [s.end_seconds for s in metadata.segments] == [1.4, 3.2]
        assert [w.text for w in metadata.words] == ["Hi", "I'm", "Jane"]
        assert metadata.words[2].timestamp == 0.7

    def test_text_only_payload_has_no_metadata(self):
        result = TranscriptionResult.from_api({"text": "hello"})

        assert result.text == "hello"
        assert result.metadata() is None

    def test_duration_without_segments(self):
        metadata = TranscriptionResult.from_api({"text": "", "duration": "2.5"}).metadata()

        assert metadata.duration_seconds == 2.5
        assert metadata.segments == []
        assert metadata.words == []

    def test_garbage_payload(self):
        result = TranscriptionResult.from_api({"text": None, "segments": [None, {"start": 1}], "words": "x"})

        assert result.text == ""
        assert result.segments == []
        assert result.words is None
        assert result.metadata() is None

    def test_non_object_payload(self):
        assert TranscriptionResult.from_api("oops") == TranscriptionResult()


class TestCardExtraction:
    def test_from_api(self):
        card = CardExtraction.from_api({
            "name": "John",
            "email": None,
            "phone": 5551234,
            "company": "Tech Inc",
            "interest": "",
            "ocrText": "John\nTech Inc\n555 1234",
        })

        assert card.phone == "5551234"
        assert card.interest is None
        assert card.ocr_text == "John\nTech Inc\n555 1234"
        assert card.fields().present() == {"name": "John", "phone": "5551234", "company": "Tech Inc"}

    def test_snake_case_ocr_key(self):
        assert CardExtraction.from_api({"ocr_text": "ACME"}).ocr_text == "ACME"
