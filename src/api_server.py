"""
FastAPI API Server.

REST API for booth lead capture: voice recordings, business-card
images and manual lead entry. Audio extraction runs in the separate
lead processor worker.

Start with:
    uvicorn src.api_server:app --reload --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
load_dotenv(".env.local")

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import close_dependencies
from src.api.leads import router as leads_router
from src.api.middleware import RateLimitMiddleware, RequestIdMiddleware
from src.config import get_settings
from src.logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle hooks."""
    logger.info(
        "api_server_starting",
        confidence_threshold=get_settings().lead_confidence_threshold,
    )
    yield
    logger.info("api_server_stopping")
    await close_dependencies()


app = FastAPI(
    title="Booth Lead Capture API",
    description="Voice and business-card lead capture with confidence scoring",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware (order matters: last added is outermost)
app.add_middleware(RateLimitMiddleware, max_requests=get_settings().rate_limit_per_minute)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(leads_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400), not 422."""
    logger.warning("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/health", tags=["System"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "service": "booth-lead-capture"}


@app.get("/", tags=["System"])
async def root() -> dict[str, str]:
    """API root."""
    return {
        "service": "Booth Lead Capture",
        "version": "0.1.0",
        "docs": "/docs",
    }
