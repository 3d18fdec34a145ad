"""Configuration management for voxintent."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from voxintent.errors import ConfigurationError
from voxintent.logging_utils import LogProfile

Backend = Literal["ollama", "pattern"]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="VOXINTENT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transport
    host: str = Field(default="0.0.0.0", description="Bind address for the WebSocket server")  # noqa: S104
    port: int = Field(default=8082, ge=1, le=65535, description="Bind port for the WebSocket server")

    # Completion service
    backend: Backend = Field(default="ollama", description="Completion backend: 'ollama' or offline 'pattern'")
    ollama_url: str = Field(default="http://localhost:11434", description="Ollama API base URL")
    model: str = Field(default="llama3.2:3b", description="Model name passed to the completion service")
    completion_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for one completion call")
    temperature: float = Field(default=0.1, ge=0, description="Sampling temperature")
    num_predict: int = Field(default=200, gt=0, description="Maximum tokens generated per completion")

    # Conversation memory
    context_max_turns: int = Field(default=5, gt=0, description="Turns kept per session")
    context_ttl_minutes: float = Field(default=30.0, gt=0, description="Inactivity timeout for session memory")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: LogProfile = Field(default="default", description="Log format profile")


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, applying non-None overrides.

    Raises:
        ConfigurationError: If a value fails validation.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**updates)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
