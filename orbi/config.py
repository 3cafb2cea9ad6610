import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite:///./messages.db"
DEFAULT_TEST_DATABASE_URL = "sqlite:///./messages_test.db"

# Project root (parent of orbi/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="allow",  # Allow extra environment variables
    )

    app_name: str = "orbi-relay"
    database_url: Optional[str] = None  # Will be set dynamically
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    disable_auth: bool = Field(default=False, json_schema_extra={"env": "DISABLE_AUTH"})
    host: str = Field(default="0.0.0.0", json_schema_extra={"env": "HOST"})
    port: int = Field(default=8443, json_schema_extra={"env": "PORT"})

    # Telegram
    telegram_enabled: bool = Field(
        default=False, json_schema_extra={"env": "TELEGRAM_ENABLED"}
    )
    telegram_bot_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TELEGRAM_BOT_TOKEN"}
    )
    bot_locale: str = Field(default="en", json_schema_extra={"env": "BOT_LOCALE"})
    typing_interval_seconds: float = Field(
        default=4.0, gt=0, json_schema_extra={"env": "TYPING_INTERVAL_SECONDS"}
    )
    poll_timeout_seconds: int = Field(
        default=60, ge=0, json_schema_extra={"env": "POLL_TIMEOUT_SECONDS"}
    )
    poll_error_backoff_seconds: float = Field(
        default=5.0, ge=0, json_schema_extra={"env": "POLL_ERROR_BACKOFF_SECONDS"}
    )
    max_concurrent_updates: int = Field(
        default=32, ge=1, json_schema_extra={"env": "MAX_CONCURRENT_UPDATES"}
    )

    # Mini-app front-end
    webapp_url: str = Field(default="", json_schema_extra={"env": "WEBAPP_URL"})
    public_api_url: str = Field(
        default="", json_schema_extra={"env": "PUBLIC_API_URL"}
    )
    frontend_dist_path: str = Field(
        default="./frontend/dist", json_schema_extra={"env": "FRONTEND_DIST_PATH"}
    )

    # Generation gateway
    http_timeout_seconds: float = Field(
        default=30.0, gt=0, json_schema_extra={"env": "HTTP_TIMEOUT_SECONDS"}
    )
    max_retries: int = Field(default=3, ge=1, json_schema_extra={"env": "MAX_RETRIES"})
    retry_delay_seconds: float = Field(
        default=2.0, ge=0, json_schema_extra={"env": "RETRY_DELAY_SECONDS"}
    )

    # Message retention
    message_retention_days: int = Field(
        default=30, ge=1, json_schema_extra={"env": "MESSAGE_RETENTION_DAYS"}
    )
    cleanup_interval_hours: int = Field(
        default=24, ge=1, json_schema_extra={"env": "CLEANUP_INTERVAL_HOURS"}
    )

    # Generation backend selection: google | azure
    ai_service: str = Field(default="google", json_schema_extra={"env": "AI_SERVICE"})

    # Google Gemini
    gemini_api_key: Optional[str] = Field(
        default=None, json_schema_extra={"env": "GEMINI_API_KEY"}
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash", json_schema_extra={"env": "GEMINI_MODEL"}
    )
    gemini_temperature: float = Field(
        default=1.0, json_schema_extra={"env": "GEMINI_TEMPERATURE"}
    )
    gemini_top_k: int = Field(default=64, json_schema_extra={"env": "GEMINI_TOP_K"})
    gemini_top_p: float = Field(default=0.95, json_schema_extra={"env": "GEMINI_TOP_P"})
    gemini_max_output_tokens: int = Field(
        default=65536, json_schema_extra={"env": "GEMINI_MAX_OUTPUT_TOKENS"}
    )

    # Azure OpenAI (any OpenAI-compatible chat completions endpoint)
    azure_openai_api_key: Optional[str] = Field(
        default=None, json_schema_extra={"env": "AZURE_OPENAI_API_KEY"}
    )
    azure_openai_endpoint: str = Field(
        default="https://models.inference.ai.azure.com",
        json_schema_extra={"env": "AZURE_OPENAI_ENDPOINT"},
    )
    azure_openai_model: str = Field(
        default="gpt-4", json_schema_extra={"env": "AZURE_OPENAI_MODEL"}
    )
    azure_openai_max_tokens: int = Field(
        default=4096, json_schema_extra={"env": "AZURE_OPENAI_MAX_TOKENS"}
    )
    azure_openai_temperature: float = Field(
        default=1.0, json_schema_extra={"env": "AZURE_OPENAI_TEMPERATURE"}
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = (
            values.get("environment")
            or values.get("ENV")
            or values.get("ENVIRONMENT")
            or os.getenv("ENV", "development")
        )
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        elif not values.get("database_url"):
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def message_retention(self) -> timedelta:
        return timedelta(days=self.message_retention_days)

    @property
    def cleanup_interval(self) -> timedelta:
        return timedelta(hours=self.cleanup_interval_hours)


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
