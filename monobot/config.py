from functools import lru_cache
from typing import Literal, Optional

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised application settings, sourced from environment variables or .env."""

    app_name: str = Field(default="Monobot", alias="APP_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    telegram_bot_token: Optional[str] = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    telegram_webhook_secret: Optional[str] = Field(
        default=None, alias="TELEGRAM_WEBHOOK_SECRET"
    )
    backend_base_url: Optional[AnyHttpUrl] = Field(
        default=None,
        alias="BACKEND_BASE_URL",
        description="The public URL where FastAPI is reachable (used by Telegram webhooks).",
    )
    telegram_register_webhook_on_start: bool = Field(
        default=False, alias="TELEGRAM_REGISTER_WEBHOOK_ON_START"
    )
    monobank_api_url: AnyHttpUrl = Field(
        default="https://api.monobank.ua",
        alias="MONOBANK_API_URL",
        description="Base URL of the Monobank personal API.",
    )
    monobank_timeout_seconds: float = Field(
        default=30.0,
        alias="MONOBANK_TIMEOUT_SECONDS",
        gt=0,
        description="Total timeout for a single Monobank request; expiry is reported as a failure.",
    )
    default_language: str = Field(
        default="en",
        alias="DEFAULT_LANGUAGE",
        description="Display language used until a chat picks one.",
    )
    account_selection_mode: Literal["reply", "buttons"] = Field(
        default="reply",
        alias="ACCOUNT_SELECTION_MODE",
        description="How users pick an account: by replying with its number or via inline buttons.",
    )
    max_statement_days: int = Field(
        default=31,
        alias="MAX_STATEMENT_DAYS",
        ge=1,
        le=31,
        description="Largest day count accepted for a statement request.",
    )
    state_ttl_seconds: int = Field(
        default=60 * 60 * 24,
        alias="STATE_TTL_SECONDS",
        ge=0,
        description="Inactivity period after which a chat's state (and token) is forgotten; 0 keeps it forever.",
    )
    monobank_api_token: Optional[str] = Field(
        default=None,
        alias="MONOBANK_API_TOKEN",
        description="Token used by the scheduled digest job.",
    )
    digest_chat_id: Optional[int] = Field(
        default=None,
        alias="DIGEST_CHAT_ID",
        description="Chat that receives the scheduled digest.",
    )
    digest_language: Optional[str] = Field(default=None, alias="DIGEST_LANGUAGE")
    digest_secret: Optional[str] = Field(
        default=None,
        alias="DIGEST_SECRET",
        description="Path secret guarding the digest trigger endpoint.",
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor so imports share a single settings instance."""
    return Settings()  # type: ignore[call-arg]
