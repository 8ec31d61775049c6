"""
Structured logging for the lead capture service.

API requests are correlated by ``trace_id`` (set by the request-id
middleware). Queued recordings are correlated by ``job_id`` and
``booth_id``, bound for the lifetime of one job with ``job_context``, so
every event the pipeline, storage and extraction client emit while a job
runs can be traced back to the booth that captured it.

Production renders JSON for log aggregation; other environments render
colored console output.

Usage:
    from src.logging_config import get_logger, job_context

    logger = get_logger(__name__)
    with job_context(job.job_id, job.booth_id):
        logger.info("lead_scored", confidence=0.83)
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

import structlog

from src.config import get_settings

SERVICE_NAME = "booth-lead-capture"

trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
job_id_var: ContextVar[str] = ContextVar("job_id", default="")
booth_id_var: ContextVar[str] = ContextVar("booth_id", default="")

_CORRELATION_VARS = (
    ("trace_id", trace_id_var),
    ("job_id", job_id_var),
    ("booth_id", booth_id_var),
)


def _inject_correlation_ids(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Copy whichever correlation IDs are set into the event, without overriding explicit ones."""
    for key, var in _CORRELATION_VARS:
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def _add_service(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def generate_trace_id() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def job_context(job_id: str, booth_id: Optional[str] = None) -> Iterator[None]:
    """Bind a queued job's IDs to every log event emitted inside the block."""
    job_token = job_id_var.set(job_id)
    booth_token = booth_id_var.set(booth_id or "")
    try:
        yield
    finally:
        booth_id_var.reset(booth_token)
        job_id_var.reset(job_token)


def setup_logging() -> None:
    """Configure structlog and route stdlib logging through it."""
    settings = get_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_correlation_ids,
        _add_service,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    # httpx logs every OpenAI request at INFO; supabase and redis clients are chatty too
    for noisy in ("httpx", "httpcore", "hpack", "postgrest", "storage3", "redis", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
