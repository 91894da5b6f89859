import os
import tempfile
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Process-wide configuration, read once at startup (env vars / .env) and handed
    to every component.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # ===== Upstream credentials =====
    openai_key: str = Field("", alias="OPENAI_KEY")
    google_api_key: str = Field("", alias="API_KEY_GOOGLE")

    # ===== OpenAI =====
    openai_base_url: str = Field("https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    transcription_model: str = Field("whisper-1", alias="TRANSCRIPTION_MODEL")
    chat_model: str = Field("gpt-4-turbo", alias="CHAT_MODEL")
    chat_max_tokens: int = Field(2000, alias="CHAT_MAX_TOKENS")
    upstream_timeout: float = Field(600.0, alias="UPSTREAM_TIMEOUT_SEC")
    # ceiling on simultaneous upstream calls per client
    upstream_workers: int = Field(8, alias="UPSTREAM_WORKERS", ge=1)

    # ===== FFmpeg =====
    ffmpeg_binary: str = Field("ffmpeg", alias="FFMPEG_BINARY")
    ffmpeg_workers: int = Field(4, alias="FFMPEG_WORKERS", ge=1)
    segment_duration: int = Field(240, alias="SEGMENT_DURATION_SEC", gt=0)

    # ===== Uploads =====
    upload_dir: str = Field(os.path.join(tempfile.gettempdir(), "voice-relay"), alias="UPLOAD_DIR")
    max_upload_mb: int = Field(1000, alias="MAX_UPLOAD_MB", gt=0)

    # ===== HTTP =====
    frontend_dir: str = Field("", alias="FRONTEND_DIR")
    expose_client_keys: bool = Field(False, alias="EXPOSE_CLIENT_KEYS")
    cors_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="CORS_ORIGINS")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("openai_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        # CORS_ORIGINS=https://a.example,https://b.example
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Cache-backed settings loader."""
    return Settings()
