"""
Application configuration via environment variables.

Uses Pydantic BaseSettings to load and validate all config from env vars
or a .env.local file. Every setting has a sensible default for local
development so the app can start with minimal configuration.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment selector."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Central configuration for the Booth Lead Capture Service.

    Values are loaded from environment variables first, falling back
    to a `.env.local` file in the project root. Secrets should NEVER
    be committed; use `.env.example` as the template.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Environment = Environment.DEVELOPMENT

    # ── OpenAI ───────────────────────────────────────────────────
    openai_api_key: str = Field(default="", description="OpenAI API key for transcription and extraction")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")
    transcription_model: str = Field(default="whisper-1", description="Speech-to-text model")
    extraction_model: str = Field(default="gpt-4o", description="Model used to pull fields out of transcripts")
    vision_model: str = Field(default="gpt-4o", description="Model used to read business cards")
    request_timeout_seconds: float = Field(default=60.0, gt=0, description="Timeout for model API calls")

    # ── Confidence ───────────────────────────────────────────────
    lead_confidence_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Below this, partial signal is preserved in remarks"
    )

    # ── Supabase ─────────────────────────────────────────────────
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_key: str = Field(default="", description="Supabase service-role key")
    storage_bucket: str = Field(default="lead-artifacts", description="Bucket for audio and card images")
    temporary_url_ttl_seconds: int = Field(
        default=3600, ge=60, le=7 * 24 * 3600, description="Lifetime of signed raw-audio URLs"
    )

    # ── Redis ────────────────────────────────────────────────────
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")

    # ── Operational Limits ───────────────────────────────────────
    max_retry_attempts: int = Field(default=3, ge=0, le=10, description="Max retries per audio job")
    max_image_bytes: int = Field(default=10 * 1024 * 1024, ge=1, description="Largest accepted card image")
    rate_limit_per_minute: int = Field(default=60, ge=1, description="API requests per client IP per minute")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")

    # ── Derived helpers ──────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached Settings instance.

    Using lru_cache ensures we read env vars exactly once, and every
    module that calls ``get_settings()`` gets the same object.
    """
    return Settings()
