"""Application configuration via environment variables."""

from datetime import datetime
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from reelgen.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="production",
        description="Deployment environment (stack traces are only returned in development)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_reload: bool = Field(default=False, description="Enable auto-reload for development")
    api_secret_key: str | None = Field(
        default=None,
        description="Shared bearer secret that callers must present",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./reelgen.db",
        description="SQLAlchemy connection string for video records and quotas",
    )

    # Celery
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker URL",
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Celery result backend URL",
    )

    # Video generation
    video_gen_provider: str = Field(
        default="replicate",
        description="Video generation provider (replicate, stub)",
    )
    replicate_api_token: str | None = Field(default=None, description="Replicate API token")
    replicate_model: str = Field(default="luma/ray", description="Replicate model slug")
    video_width: int = Field(default=1080, description="Generated video width")
    video_height: int = Field(default=1920, description="Generated video height (9:16)")
    video_num_frames: int = Field(default=150, description="Frames per generated video")
    video_fps: int = Field(default=30, description="Generated video frame rate")

    # LLM
    llm_provider: str = Field(
        default="openai",
        description="LLM provider for metadata enrichment (openai, stub)",
    )
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4", description="OpenAI chat model")

    # Object storage
    storage_provider: str = Field(
        default="gcs",
        description="Object storage backend (gcs, local)",
    )
    storage_bucket: str | None = Field(
        default=None,
        description="GCS / Firebase Storage bucket name",
    )
    google_application_credentials: str | None = Field(
        default=None,
        description="Path to a service account JSON file (ambient credentials if unset)",
    )
    local_storage_path: str = Field(
        default="./storage",
        description="Root directory for the local storage backend",
    )
    local_storage_base_url: str | None = Field(
        default=None,
        description="Public base URL that serves local_storage_path (file:// URLs if unset)",
    )
    signed_url_expiry: datetime = Field(
        default=datetime(2500, 3, 1),
        description="Expiry of long-lived read URLs",
    )

    # FFmpeg
    ffmpeg_path: str | None = Field(
        default=None,
        description="Path to FFmpeg binary (uses 'ffmpeg' from PATH if not specified)",
    )
    ffmpeg_timeout: int = Field(
        default=300,
        description="Timeout in seconds for a single ffmpeg invocation",
    )
    thumbnail_offset_seconds: float = Field(default=1.0, description="Thumbnail frame offset")
    thumbnail_size: str = Field(default="1280x720", description="Thumbnail frame size")
    preview_duration_seconds: float = Field(default=3.0, description="Preview loop length")
    preview_height: int = Field(default=480, description="Preview loop height in pixels")
    preview_fps: int = Field(default=15, description="Preview loop frame rate")
    hls_segment_seconds: int = Field(default=10, description="HLS segment duration")

    # Admission guards
    token_gate_enabled: bool = Field(
        default=False,
        description="Charge callers a token cost per generation",
    )
    generation_token_cost: int = Field(default=250, description="Tokens charged per generation")
    daily_cap_enabled: bool = Field(
        default=False,
        description="Enforce a global daily generation cap (UTC day)",
    )
    daily_generation_limit: int = Field(default=10, description="Generations allowed per UTC day")

    # Backfill
    backfill_batch_size: int = Field(default=3, description="Videos processed concurrently per batch")
    backfill_batch_delay_seconds: float = Field(
        default=5.0,
        description="Pause between backfill batches",
    )
    backfill_max_retries: int = Field(
        default=3,
        description="Retries for a video that hits a provider rate limit",
    )
    backfill_backoff_base_seconds: float = Field(
        default=2.0,
        description="Base delay for exponential backoff on rate limits",
    )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def require(self, name: str) -> Any:
        """Return a setting that must be present, raising ConfigurationError otherwise."""
        value = getattr(self, name)
        if value is None or value == "":
            raise ConfigurationError(f"Server configuration error - {name.upper()} not set")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


# Convenience alias
settings = get_settings()
