"""
Extraction Service Client.

Talks to the OpenAI API for the three external steps of lead capture:
speech-to-text for booth recordings, structured field extraction from
the transcript, and vision extraction from business-card photos.

The client is constructed explicitly and injected into the pipeline;
responses are only trusted as candidate strings and are parsed through
the boundary records in ``src.schemas.extraction``.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx

from src.config import Settings
from src.logging_config import get_logger
from src.schemas.extraction import CardExtraction, TranscriptionResult
from src.schemas.lead import CandidateFields

logger = get_logger(__name__)


class ExtractionServiceError(RuntimeError):
    """A transcription or vision call failed or returned an unusable payload."""


EXTRACTION_SYSTEM_PROMPT = "You are a helpful assistant that extracts lead information from text."

# Structured Outputs requires every property to be listed as required.
LEAD_EXTRACTION_SCHEMA: dict[str, Any] = {
    "name": "lead_extraction",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "name": {"type": ["string", "null"], "description": "The name of the person."},
            "email": {"type": ["string", "null"], "description": "The email address of the person."},
            "phone": {"type": ["string", "null"], "description": "The phone number."},
            "company": {"type": ["string", "null"], "description": "The company name."},
            "interest": {
                "type": ["string", "null"],
                "description": "The specific product or service interest.",
            },
        },
        "required": ["name", "email", "phone", "company", "interest"],
        "additionalProperties": False,
    },
}

CARD_SYSTEM_PROMPT = """You are a business card information extractor.
Extract all contact information from the business card image.
Return ONLY valid JSON with these exact keys:
name, email, phone, company, interest, ocrText

- name: Full name of the person
- email: Email address
- phone: Phone number
- company: Company name
- interest: Job title or role (if available)
- ocrText: All text extracted from the card

If any field is not found, use null."""

CARD_USER_PROMPT = "Extract all contact information from this business card."


class OpenAIExtractionClient:
    """Thin async wrapper over the OpenAI REST endpoints used for lead capture."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIExtractionClient:
        http_client = httpx.AsyncClient(
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout_seconds,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
        )
        return cls(http_client, settings)

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- Voice --

    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        mimetype: str = "application/octet-stream",
    ) -> TranscriptionResult:
        """
        Transcribe one complete audio clip.

        Requests ``verbose_json`` with word and segment timestamps so the
        scorer can use duration, segmentation and speech rate.
        """
        payload = await self._post(
            "/audio/transcriptions",
            data={
                "model": self._settings.transcription_model,
                "response_format": "verbose_json",
                "timestamp_granularities[]": ["word", "segment"],
            },
            files={"file": (filename, audio, mimetype)},
        )
        result = TranscriptionResult.from_api(payload)

        logger.info(
            "audio_transcribed",
            filename=filename,
            transcript_length=len(result.text),
            duration_seconds=result.duration_seconds,
            segments=len(result.segments or []),
            words=len(result.words or []),
        )
        return result

    async def extract_fields(self, transcript: str) -> CandidateFields:
        """Pull contact fields out of a transcript with a strict JSON schema."""
        if not transcript.strip():
            return CandidateFields()

        payload = await self._post(
            "/chat/completions",
            json={
                "model": self._settings.extraction_model,
                "messages": [
                    {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                    {"role": "user", "content": transcript},
                ],
                "response_format": {"type": "json_schema", "json_schema": LEAD_EXTRACTION_SCHEMA},
            },
        )
        return CandidateFields.from_mapping(_message_json(payload))

    # -- Image --

    async def extract_card(self, image: bytes, mimetype: str = "image/jpeg") -> CardExtraction:
        """Read contact fields and the raw OCR text from a business-card photo."""
        data_url = f"data:{mimetype};base64,{base64.b64encode(image).decode('ascii')}"

        payload = await self._post(
            "/chat/completions",
            json={
                "model": self._settings.vision_model,
                "messages": [
                    {"role": "system", "content": CARD_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "image_url", "image_url": {"url": data_url}},
                            {"type": "text", "text": CARD_USER_PROMPT},
                        ],
                    },
                ],
                "response_format": {"type": "json_object"},
                "max_tokens": 1000,
            },
        )
        extraction = CardExtraction.from_api(_message_json(payload))

        logger.info(
            "card_extracted",
            fields_found=len(extraction.fields().present()),
            ocr_text_length=len(extraction.ocr_text or ""),
        )
        return extraction

    async def _post(self, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.post(path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("extraction_service_status_error", path=path, status=e.response.status_code)
            raise ExtractionServiceError(
                f"{path} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("extraction_service_transport_error", path=path, error=str(e))
            raise ExtractionServiceError(f"{path} request failed: {e}") from e
        except ValueError as e:
            raise ExtractionServiceError(f"{path} returned invalid JSON") from e


def _message_json(payload: Any) -> Any:
    """Decode the JSON document in the first chat completion choice."""
    try:
        content = payload["choices"][0]["message"]["content"]
        return json.loads(content)
    except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
        raise ExtractionServiceError("chat completion did not contain a JSON message") from e
