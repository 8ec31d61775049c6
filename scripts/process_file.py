"""
CLI tool to run a local recording or business-card photo through the
lead pipeline and write JSON + Markdown reports.

Nothing is uploaded or persisted; only the OpenAI calls are real.

Usage:
    python scripts/process_file.py <file> [<file> ...] [--output-dir reports]

Examples:
    # Score a booth recording
    python scripts/process_file.py fixtures/booth_intro.m4a

    # Score a business card with a stricter threshold
    python scripts/process_file.py fixtures/card.jpg --threshold 0.7
"""

from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dotenv import load_dotenv
load_dotenv(".env.local")

from src.config import get_settings
from src.logging_config import get_logger, setup_logging
from src.schemas.lead import Lead
from src.services.confidence import ScoreBreakdown, score_breakdown
from src.services.extraction_client import ExtractionServiceError, OpenAIExtractionClient
from src.services.lead_pipeline import LeadPipeline

logger = get_logger(__name__)

AUDIO_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/m4a",
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
}
IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def guess_mimetype(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in AUDIO_TYPES:
        return AUDIO_TYPES[suffix]
    if suffix in IMAGE_TYPES:
        return IMAGE_TYPES[suffix]
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


def build_report(
    path: Path,
    size: int,
    mimetype: str,
    lead: Lead,
    breakdown: ScoreBreakdown,
    threshold: float,
    elapsed: float,
) -> dict[str, Any]:
    raw_text = lead.transcript if lead.transcript is not None else lead.ocr_text
    confidence = lead.confidence or 0.0
    return {
        "metadata": {
            "filename": path.name,
            "file_size_kb": round(size / 1024, 2),
            "mimetype": mimetype,
            "processed_at": datetime.now(timezone.utc).isoformat(),
            "processing_time_seconds": round(elapsed, 2),
        },
        "confidence_score": {
            "value": confidence,
            "percentage": f"{confidence * 100:.1f}%",
            "threshold": threshold,
            "status": "HIGH_CONFIDENCE" if confidence >= threshold else "LOW_CONFIDENCE_FALLBACK",
            "breakdown": breakdown.to_dict(),
        },
        "extracted_data": {
            "name": lead.name,
            "email": lead.email,
            "phone": lead.phone,
            "company": lead.company,
            "interest": lead.interest,
        },
        "raw_text": {
            "text": raw_text,
            "length": len(raw_text or ""),
            "word_count": len((raw_text or "").split()),
        },
        "fallback_info": {
            "triggered": confidence < threshold,
            "remarks": lead.remarks,
        },
        "type": lead.type.value,
    }


def render_markdown(report: dict[str, Any]) -> str:
    meta = report["metadata"]
    conf = report["confidence_score"]
    lines = [
        f"# Lead Capture Report: {meta['filename']}",
        "",
        f"- **Processed:** {meta['processed_at']} ({meta['processing_time_seconds']}s)",
        f"- **File:** {meta['file_size_kb']} KB, {meta['mimetype']}",
        f"- **Type:** {report['type']}",
        "",
        "## Confidence",
        "",
        f"**{conf['percentage']}** ({conf['status']}, threshold {conf['threshold']})",
        "",
        "| Adjustment | Delta |",
        "|---|---|",
    ]
    for item in conf["breakdown"]["adjustments"]:
        lines.append(f"| {item['reason']} | {item['delta']:+} |")

    lines += ["", "## Extracted Fields", "", "| Field | Value |", "|---|---|"]
    for key, value in report["extracted_data"].items():
        lines.append(f"| {key} | {value if value is not None else '_none_'} |")

    raw = report["raw_text"]
    lines += [
        "",
        "## Raw Text",
        "",
        f"{raw['word_count']} words, {raw['length']} characters",
        "",
        "```",
        raw["text"] or "",
        "```",
    ]

    fallback = report["fallback_info"]
    lines += ["", "## Fallback", ""]
    if fallback["triggered"]:
        lines.append("Low confidence: partial signal preserved in remarks.")
        lines += ["", f"> {fallback['remarks'] or '(no salvageable signal)'}"]
    else:
        lines.append("Not triggered.")

    return "\n".join(lines) + "\n"


async def process_file(
    path: Path,
    pipeline: LeadPipeline,
    client: OpenAIExtractionClient,
    output_dir: Path,
) -> dict[str, Any]:
    data = path.read_bytes()
    mimetype = guess_mimetype(path)
    start = time.monotonic()

    if mimetype.startswith("audio/"):
        transcription = await client.transcribe(data, path.name, mimetype)
        fields = await client.extract_fields(transcription.text)
        lead = pipeline.build_voice_lead(transcription, fields, booth_id="local-test")
        breakdown = score_breakdown(fields, transcription.text, transcription.metadata())
    elif mimetype.startswith("image/"):
        extraction = await client.extract_card(data, mimetype)
        lead = pipeline.build_image_lead(extraction, booth_id="local-test")
        breakdown = score_breakdown(extraction.fields(), extraction.ocr_text)
    else:
        raise ValueError(f"Unsupported file type: {path.suffix or path.name}")

    report = build_report(
        path, len(data), mimetype, lead, breakdown, pipeline.threshold, time.monotonic() - start
    )

    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    json_path = output_dir / f"{path.stem}_{stamp}.json"
    json_path.write_text(json.dumps(report, indent=2))
    (output_dir / f"{path.stem}_{stamp}.md").write_text(render_markdown(report))

    conf = report["confidence_score"]
    print(f"{path.name}: {conf['percentage']} {conf['status']} -> {json_path}")
    logger.info(
        "report_written",
        file=path.name,
        confidence=report["confidence_score"]["percentage"],
        status=report["confidence_score"]["status"],
        report=str(json_path),
    )
    return report


async def run(paths: list[Path], output_dir: Path, threshold: float) -> int:
    settings = get_settings()
    client = OpenAIExtractionClient.from_settings(settings)
    pipeline = LeadPipeline(client, threshold=threshold)
    output_dir.mkdir(parents=True, exist_ok=True)

    failures = 0
    try:
        for path in paths:
            try:
                await process_file(path, pipeline, client, output_dir)
            except (ExtractionServiceError, ValueError, OSError) as e:
                failures += 1
                logger.error("file_processing_failed", file=str(path), error=str(e))
    finally:
        await client.aclose()

    logger.info("run_complete", files=len(paths), failed=failures)
    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Score local recordings and card photos")
    parser.add_argument("files", nargs="+", type=Path, help="Audio or image files")
    parser.add_argument("--output-dir", type=Path, default=Path("reports"), help="Report directory")
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Confidence threshold (defaults to LEAD_CONFIDENCE_THRESHOLD)",
    )
    args = parser.parse_args()

    setup_logging()
    threshold = args.threshold if args.threshold is not None else get_settings().lead_confidence_threshold
    sys.exit(asyncio.run(run(args.files, args.output_dir, threshold)))


if __name__ == "__main__":
    main()
