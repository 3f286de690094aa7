# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is missing or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PROOFLINE_",
        extra="ignore",
    )

    # === Analyzer ===
    analyzer_provider: Literal["openai", "anthropic", "ollama"] = "openai"
    analyzer_model: str = "gpt-4o-mini"
    analyzer_locale: str = "en-US"
    analyzer_temperature: float = 0.0
    analyzer_max_tokens: int = 1024
    analyzer_timeout_s: float = 30.0

    # Provider API keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Versions (part of every cache key) ===
    prompt_version: str = "2.0"
    ruleset_version: str = "1.0"

    # === Cache ===
    cache_backend: Literal["memory"] = "memory"
    cache_max_entries: int = 10_000
    cache_max_age_hours: float = 24.0

    # === Batch scheduling ===
    batch_concurrency: int = 4
    batch_delay_ms: int = 200

    # === Text filter ===
    min_text_length: int = 2
    symbolic_min_length: int = 3

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("batch_concurrency", "cache_max_entries", "min_text_length")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("batch_delay_ms")
    @classmethod
    def validate_delay(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("batch_delay_ms must be >= 0")
        return v

    @field_validator("cache_max_age_hours", "analyzer_timeout_s")
    @classmethod
    def validate_positive_duration(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.symbolic_min_length < self.min_text_length:
            errors.append("SYMBOLIC_MIN_LENGTH must be >= MIN_TEXT_LENGTH")

        if not self.prompt_version or not self.ruleset_version:
            errors.append("PROMPT_VERSION and RULESET_VERSION must be non-empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def batch_delay_s(self) -> float:
        """Inter-batch pause in seconds."""
        return self.batch_delay_ms / 1000.0

    def api_key_for(self, provider: str) -> str:
        """Return the configured API key for a hosted provider ('' if none)."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(provider, "")


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
