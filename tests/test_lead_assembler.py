"""
Tests for lead assembly.
"""

from src.schemas.extraction import CardExtraction, TranscriptionResult
from src.schemas.lead import CandidateFields, CaptureMode, FallbackDecision, LeadType
from src.services.lead_assembler import assemble_image_lead, assemble_voice_lead


class TestAssembleVoiceLead:
    """Test cases for assemble_voice_lead()."""

    def test_fields_and_urls_pass_through(self, full_fields, verbose_transcription):
        lead = assemble_voice_lead(
            booth_id="booth-7",
            transcription=verbose_transcription,
            fields=full_fields,
            confidence=0.92,
            decision=FallbackDecision(triggered=False),
            source_url="https://cdn.example.com/audio/1.m4a",
            raw_audio_url="https://cdn.example.com/signed/1.m4a?token=t",
        )

        assert lead.booth_id == "booth-7"
        assert lead.name == "Jane Smith"
        assert lead.interest == "CTO"
        assert lead.transcript == verbose_transcription.text
        assert lead.ocr_text is None
        assert lead.source == "https://cdn.example.com/audio/1.m4a"
        assert lead.raw_audio_url == "https://cdn.example.com/signed/1.m4a?token=t"
        assert lead.type == LeadType.VOICE
        assert lead.capture_mode == CaptureMode.AI
        assert lead.confidence == 0.92
        assert lead.remarks is None

    def test_low_confidence_keeps_fields_and_remarks(self, full_fields):
        decision = FallbackDecision(triggered=True, remarks="Name (low confidence): Jane Smith")

        lead = assemble_voice_lead(
            booth_id="booth-7",
            transcription=TranscriptionResult(text="short"),
            fields=full_fields,
            confidence=0.3,
            decision=decision,
            source_url=None,
        )

        assert lead.name == "Jane Smith"
        assert lead.email == "jane@x.com"
        assert lead.remarks == "Name (low confidence): Jane Smith"

    def test_absent_values_are_none(self):
        lead = assemble_voice_lead(
            booth_id=None,
            transcription=TranscriptionResult(text=""),
            fields=None,
            confidence=0.0,
            decision=FallbackDecision(triggered=True),
            source_url=None,
        )

        record = lead.to_record()
        for key in ("name", "email", "phone", "company", "interest", "transcript", "remarks"):
            assert record[key] is None, key
        assert record["confidence"] == 0.0
        assert record["type"] == "voice"


class TestAssembleImageLead:
    """Test cases for assemble_image_lead()."""

    def test_image_lead(self, sparse_card):
        lead = assemble_image_lead(
            booth_id="booth-9",
            extraction=sparse_card,
            confidence=0.36,
            decision=FallbackDecision(triggered=True, remarks="OCR Text: John"),
            source_url="https://cdn.example.com/business-cards/c.jpg",
        )

        assert lead.type == LeadType.IMAGE
        assert lead.name == "John"
        assert lead.company == "Tech Inc"
        assert lead.email is None
        assert lead.ocr_text == sparse_card.ocr_text
        assert lead.transcript is None
        assert lead.raw_audio_url is None
        assert lead.remarks == "OCR Text: John"

    def test_booth_id_comes_from_caller(self):
        extraction = CardExtraction.from_api({"name": "Ann", "boothId": "booth-from-card"})
        lead = assemble_image_lead(
            booth_id="booth-1",
            extraction=extraction,
            confidence=0.5,
            decision=FallbackDecision(triggered=True),
            source_url=None,
        )

        assert lead.booth_id == "booth-1"
        assert CandidateFields(name="Ann") == extraction.fields()
