from functools import lru_cache
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEFAULT_PROMPT = "Generate ambient background sound that fits the video's content"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    fal_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("FAL_KEY", "FAL_API_KEY"))
    fal_queue_url: str = "https://queue.fal.run"
    fal_rest_url: str = "https://rest.alpha.fal.ai"
    fal_application: str = "fal-ai/thinksound"
    fal_request_timeout_seconds: float = 30.0

    generation_deadline_seconds: float = 60.0
    submit_max_attempts: int = 3
    submit_retry_delay_seconds: float = 2.0
    status_poll_interval_seconds: float = 1.0
    default_prompt: str = DEFAULT_PROMPT

    cors_allowed_origins: List[str] = Field(
        default_factory=lambda: [
            "https://localhost:5241",
            "https://new.express.adobe.com",
            "https://w513kh8ki.wxp.adobe-addons.com",
            "https://w0n4g6khi.wxp.adobe-addons.com",
        ]
    )
    cors_allowed_origin_regex: str = r"^https://[a-z0-9-]+\.wxp\.adobe-addons\.com$"

    upload_allowed_mime_types: List[str] = Field(
        default_factory=lambda: ["video/mp4", "video/quicktime", "video/webm"]
    )
    upload_max_bytes: int = 100 * 1024 * 1024

    asset_store: Literal["fal", "s3"] = "fal"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket: Optional[str] = None
    s3_prefix: str = "soundsnap-uploads"
    s3_presigned_url_ttl_seconds: int = 3600

    log_level: str = "INFO"

    app_host: str = "127.0.0.1"
    app_port: int = 3000

    @field_validator("s3_prefix", mode="before")
    @classmethod
    def normalize_prefix(cls, value: Optional[str]) -> str:
        value = value or ""
        return value.strip("/")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        value = (value or "INFO").upper()
        if value not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level {value}")
        return value

    @field_validator("submit_max_attempts")
    @classmethod
    def at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("submit_max_attempts must be at least 1")
        return value

    @field_validator("generation_deadline_seconds", "status_poll_interval_seconds")
    @classmethod
    def positive_duration(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("durations must be positive")
        return value

    @field_validator("submit_retry_delay_seconds")
    @classmethod
    def non_negative_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("submit_retry_delay_seconds cannot be negative")
        return value


@lru_cache()
def get_settings() -> Settings:
    try:
        return Settings()
    except Exception as exc:
        raise RuntimeError("Failed to load application settings. Ensure your .env file is configured.") from exc


settings = get_settings()
