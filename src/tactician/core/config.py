"""Configuration management for the Tactician turn assistant.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files, and runtime overrides. API keys are held in
SecretStr.

Example:
    >>> from tactician.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.engine.max_suggestion_attempts
    3

Environment Variables:
    TACTICIAN_LLM_API_KEY: API key for the OpenAI-compatible endpoint
    TACTICIAN_LLM_BASE_URL: Endpoint base URL (OpenRouter by default)
    TACTICIAN_LLM_MODEL: Model identifier
    TACTICIAN_ENGINE_MAX_SUGGESTION_ATTEMPTS: Regeneration bound per cycle
    TACTICIAN_STORAGE_BACKEND: Turn state store backend (memory or sqlite)
    TACTICIAN_STORAGE_DATABASE_PATH: Path to the SQLite turn state store
    TACTICIAN_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    TACTICIAN_LOG_JSON: Render log entries as JSON lines
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tactician.core.exceptions import ConfigurationError


class LLMSettings(BaseSettings):
    """Configuration for the OpenAI-compatible LLM transport.

    Attributes:
        api_key: API key for the endpoint.
        base_url: Endpoint base URL.
        model: Model identifier.
        temperature: Sampling temperature.
        max_tokens: Maximum tokens per reply.
        max_retries: Transport-level retry attempts.
        timeout_seconds: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="TACTICIAN_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the LLM endpoint",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible endpoint base URL",
    )
    model: str = Field(
        default="google/gemini-2.0-flash-001",
        description="Model identifier",
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: int = Field(
        default=400,
        ge=16,
        le=8192,
        description="Maximum tokens per reply",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Transport retry attempts",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="Request timeout",
    )


class EngineSettings(BaseSettings):
    """Configuration for the turn engine.

    Attributes:
        max_suggestion_attempts: Upper bound on silent regenerations per
            cycle after prerequisite or passive-ability rejections.
        base_actions: Actions a combatant gets at the start of a turn.
        reply_preview_chars: Characters of a bad reply kept for errors/logs.
    """

    model_config = SettingsConfigDict(
        env_prefix="TACTICIAN_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_suggestion_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum suggestion requests per cycle",
    )
    base_actions: int = Field(
        default=3,
        ge=1,
        le=3,
        description="Actions available at turn start",
    )
    reply_preview_chars: int = Field(
        default=120,
        ge=0,
        le=2000,
        description="Characters of an unparseable reply kept for diagnostics",
    )


class StorageSettings(BaseSettings):
    """Configuration for the turn state flag store.

    Attributes:
        backend: Which store implementation to build.
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="TACTICIAN_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Turn state store backend",
    )
    database_path: Path = Field(
        default=Path("data/tactician.db"),
        description="Path to SQLite database",
    )

    @model_validator(mode="after")
    def validate_database_path(self) -> "StorageSettings":
        """Reject a database path that points at an existing directory.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the path is a directory.
        """
        if self.backend == "sqlite" and self.database_path.is_dir():
            raise ConfigurationError(
                f"database_path ({self.database_path}) is a directory",
                config_key="database_path",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Render log entries as JSON.
        llm: LLM transport settings.
        engine: Turn engine settings.
        storage: Flag store settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="TACTICIAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Tactician",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Render log entries as JSON lines",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "LLMSettings",
    "EngineSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
