from typing import Literal

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from codeduel.logger import setup_logger

logger = setup_logger(__name__)


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Provider credentials (both required, the service refuses to start without them)
    openai_api_key: str
    anthropic_api_key: str

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    environment: Literal["development", "production"] = "development"
    production_origin: str = "https://yourdomain.com"
    development_origin: str = "http://localhost:3000"
    static_dir: str = "public"
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"

    # Request limits
    max_problem_length: int = 5000
    max_body_bytes: int = 10 * 1024

    # Provider calls
    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    anthropic_version: str = "2023-06-01"
    llm_timeout_seconds: float = 60.0
    llm_max_attempts: int = 1
    temperature: float = 0.7

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def allowed_origin(self) -> str:
        if self.environment == "production":
            return self.production_origin
        return self.development_origin


def load_settings() -> Settings:
    """
    Build settings once at startup.

    Missing credentials are fatal: the process exits instead of starting
    in a degraded mode.
    """
    try:
        return Settings()
    except ValidationError as e:
        missing = [
            str(err["loc"][0]).upper() for err in e.errors() if err.get("type") == "missing"
        ]
        if missing:
            logger.error(f"⚠️  Missing required configuration: {', '.join(missing)}")
            logger.error("Please add OPENAI_API_KEY and ANTHROPIC_API_KEY to your .env file")
        else:
            logger.error(f"⚠️  Invalid configuration: {e}")
        raise SystemExit(1)
