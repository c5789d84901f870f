"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.

Usage:
    from backend.settings import get_settings, Settings

    settings = get_settings()
    print(settings.provider_priority)

    # Tests build their own instance without reading .env
    settings = Settings(environment="test", _env_file=None)
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.blueprint import TimeModelConfig
from models.generation import BackendName


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR",
    )

    # -------------------------------------------------------------------------
    # Generation Backends - Gemini (OpenAI-compatible endpoint)
    # -------------------------------------------------------------------------
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Google Gemini API key",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai",
        description="Gemini OpenAI-compatible base URL",
    )
    gemini_model: str = Field(default="gemini-2.0-flash-exp")

    # -------------------------------------------------------------------------
    # Generation Backends - DeepSeek (OpenAI-compatible endpoint)
    # -------------------------------------------------------------------------
    deepseek_api_key: Optional[str] = Field(
        default=None,
        description="DeepSeek API key",
    )
    deepseek_base_url: str = Field(default="https://api.deepseek.com/v1")
    deepseek_model: str = Field(default="deepseek-chat")

    # -------------------------------------------------------------------------
    # Generation Backends - OpenAI
    # -------------------------------------------------------------------------
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Override for the OpenAI API base URL (proxies)",
    )
    openai_model: str = Field(default="gpt-4o")

    # -------------------------------------------------------------------------
    # Generation Backends - Perplexity / Anthropic
    # -------------------------------------------------------------------------
    perplexity_api_key: Optional[str] = Field(default=None)
    perplexity_model: str = Field(default="sonar")
    anthropic_api_key: Optional[str] = Field(default=None)
    anthropic_model: str = Field(default="claude-3-5-sonnet-latest")

    # -------------------------------------------------------------------------
    # Fallback Chain
    # -------------------------------------------------------------------------
    ai_provider_priority: str = Field(
        default="gemini,deepseek,openai",
        description="Comma-separated default backend order",
    )
    provider_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a single backend attempt",
    )
    fallback_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay before the next backend after a timeout/connection/rate-limit failure",
    )
    error_delay_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Delay before the next backend after any other failure",
    )

    @property
    def provider_priority(self) -> List[BackendName]:
        """Parse the backend order into BackendName values."""
        return [
            BackendName(name.strip().lower())
            for name in self.ai_provider_priority.split(",")
            if name.strip()
        ]

    # -------------------------------------------------------------------------
    # Time Model Defaults
    # -------------------------------------------------------------------------
    work_seconds_per_10_reps: float = Field(default=30, ge=0)
    rest_between_sets_seconds: float = Field(default=90, ge=0)
    rest_between_exercises_seconds: float = Field(default=120, ge=0)
    warmup_minutes_default: float = Field(default=8, ge=0)
    cooldown_minutes_default: float = Field(default=5, ge=0)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------
    fit_tolerance_minutes: float = Field(
        default=5,
        ge=0,
        description="Half-width of the fitting window around the target duration",
    )
    prompt_tolerance_minutes: float = Field(
        default=10,
        ge=0,
        description="Half-width of the duration window quoted to the generator",
    )
    analysis_temperature: float = Field(default=0.3, ge=0, le=2)
    analysis_max_tokens: int = Field(default=2000, ge=1)
    blueprint_temperature: float = Field(default=0.7, ge=0, le=2)
    blueprint_max_tokens: int = Field(default=16000, ge=1)

    def time_model(self) -> TimeModelConfig:
        """Documented time model used when a user has no configuration."""
        return TimeModelConfig(
            work_seconds_per_10_reps=self.work_seconds_per_10_reps,
            rest_between_sets_seconds=self.rest_between_sets_seconds,
            rest_between_exercises_seconds=self.rest_between_exercises_seconds,
            warmup_minutes_default=self.warmup_minutes_default,
            cooldown_minutes_default=self.cooldown_minutes_default,
        )

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("ai_provider_priority")
    @classmethod
    def validate_provider_priority(cls, v: str) -> str:
        """Ensure every listed backend is known."""
        known = {b.value for b in BackendName}
        names = [name.strip().lower() for name in v.split(",") if name.strip()]
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ValueError(
                f"Unknown backend(s) in ai_provider_priority: {unknown}. "
                f"Must be from: {sorted(known)}"
            )
        if not names:
            raise ValueError("ai_provider_priority must list at least one backend")
        return v

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
