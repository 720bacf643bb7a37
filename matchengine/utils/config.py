"""
Configuration management for the matching engine.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from matchengine.utils.constants import (
    DEEPSEEK_BASE_URL,
    DEEPSEEK_DEFAULT_MODEL,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_MODEL,
    OPENROUTER_KEY_PREFIX,
    SIGNED_URL_MAX_SECONDS,
    SIGNED_URL_MIN_SECONDS,
)


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent


class DatabaseSettings(BaseSettings):
    """MongoDB record store configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "matchengine"
    username: str | None = None
    password: str | None = None


class StorageSettings(BaseSettings):
    """Blob storage credentials used to sign private resume downloads."""

    model_config = SettingsConfigDict(env_prefix="CLOUDINARY_")

    cloud_name: str | None = None
    api_key: str | None = None
    api_secret: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


class MatchingSettings(BaseSettings):
    """Time budgets, cache lifetimes and fetch timeouts for a match run."""

    model_config = SettingsConfigDict(env_prefix="MATCH_")

    # AI race
    time_budget_seconds: float = 22.0
    fast_time_budget_seconds: float = 18.0
    grace_period_seconds: float = 2.0

    # Caches
    ai_cache_ttl_seconds: float = 300.0
    fallback_cache_ttl_seconds: float = 120.0
    text_cache_ttl_seconds: float = 180.0
    cache_max_entries: int = Field(default=1000, ge=1)

    # Resume access
    resume_fetch_timeout_seconds: float = 8.0
    document_download_timeout_seconds: float = 15.0
    signed_url_ttl_seconds: int = 120

    # Prompt shaping
    resume_text_prompt_chars: int = 2000

    @field_validator("signed_url_ttl_seconds")
    @classmethod
    def clamp_signed_url_ttl(cls, v: int) -> int:
        """Keep signed links inside the window the blob store accepts."""
        return max(SIGNED_URL_MIN_SECONDS, min(SIGNED_URL_MAX_SECONDS, v))

    def time_budget(self, fast_first: bool = False) -> float:
        """Seconds the orchestrator waits for the AI before committing to the fallback."""
        budget = self.fast_time_budget_seconds if fast_first else self.time_budget_seconds
        return budget + self.grace_period_seconds


class AISettings(BaseSettings):
    """Hosted chat-completion provider configuration."""

    model_config = SettingsConfigDict(env_prefix="AI_", populate_by_name=True)

    api_key: str = Field(
        default="",
        validation_alias=AliasChoices("DEEPSEEK_API_KEY", "GEMINI_API_KEY", "AI_API_KEY"),
    )
    model: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DEEPSEEK_MODEL", "AI_MODEL"),
    )
    temperature: float = 0.7
    max_tokens: int = 2000

    # Retry policy
    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0
    jitter_seconds: float = 0.3

    @field_validator("api_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        return (v or "").strip()


class ProviderConfig(BaseModel):
    """Resolved provider shape (base URL, model, auth headers)."""

    model_config = ConfigDict(frozen=True)

    provider: Literal["openrouter", "deepseek"]
    base_url: str
    model: str
    api_key: str

    @property
    def completions_url(self) -> str:
        base = "".join(self.base_url.split()).rstrip("/")
        return f"{base}/chat/completions"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }


def resolve_provider(ai: AISettings) -> Optional[ProviderConfig]:
    """
    Pick the provider shape from the configured credential.

    Returns:
        ProviderConfig, or None when no key is configured
    """
    key = ai.api_key
    if not key:
        return None
    if key.startswith(OPENROUTER_KEY_PREFIX):
        return ProviderConfig(
            provider="openrouter",
            base_url=OPENROUTER_BASE_URL,
            model=ai.model or OPENROUTER_DEFAULT_MODEL,
            api_key=key,
        )
    return ProviderConfig(
        provider="deepseek",
        base_url=DEEPSEEK_BASE_URL,
        model=ai.model or DEEPSEEK_DEFAULT_MODEL,
        api_key=key,
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "matchengine.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console_output: bool = True
    file_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "matchengine"
    version: str = "0.1.0"
    description: str = "Resume-to-job matching engine"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    ai: AISettings = Field(default_factory=AISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings
