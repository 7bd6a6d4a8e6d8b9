"""Application settings using Pydantic BaseSettings."""

import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from routerchat.models import Backend


def _get_default_db_path() -> str:
    """Get absolute path to default SQLite database."""
    package_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    project_dir = os.path.dirname(package_dir)
    db_path = os.path.join(project_dir, "data", "routerchat.db")
    return f"sqlite:///{db_path}"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: str | None = Field(default=None)
    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")

    # Database
    database_url: str = Field(default_factory=_get_default_db_path)

    # Anthropic (legacy completions and messages API share the host)
    anthropic_base_url: str = Field(default="https://api.anthropic.com")
    anthropic_version: str = Field(default="2023-06-01")
    anthropic_api_key: str = Field(default="")

    # OpenRouter
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1")
    openrouter_referer: str = Field(default="Router Chat AI")
    openrouter_title: str = Field(default="Router Chat AI (contact@routerchat.app)")
    openrouter_api_key: str = Field(default="")

    # Generation
    request_timeout_seconds: float = Field(default=30.0)
    stream_timeout_seconds: float = Field(default=60.0)
    temperature: float = Field(default=0.7)
    max_tokens: int = Field(default=1000)

    # Selection used for new conversations
    default_backend: Backend = Field(default=Backend.OPENROUTER)
    default_model: str = Field(default="openai/gpt-4o")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def seeded_api_keys(self) -> dict[Backend, str]:
        """API keys supplied through the environment, keyed by backend."""
        keys: dict[Backend, str] = {}
        if self.anthropic_api_key:
            keys[Backend.ANTHROPIC_COMPLETE] = self.anthropic_api_key
            keys[Backend.ANTHROPIC_MESSAGES] = self.anthropic_api_key
        if self.openrouter_api_key:
            keys[Backend.OPENROUTER] = self.openrouter_api_key
        return keys

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        vv = (v or "").strip().lower()
        if vv not in {"development", "staging", "production"}:
            raise ValueError("ENVIRONMENT must be one of: development, staging, production")
        return vv

    @field_validator("request_timeout_seconds", "stream_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
