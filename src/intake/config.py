"""
Intake - Configuration and settings.

Loaded from environment / .env via pydantic-settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class IntakeSettings(BaseSettings):
    """Settings for the intake flow, collaborator client and web surface."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    intake_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Backend collaborators (address lookup, coverage, cleaners, pricing)
    api_base_url: str = "http://localhost:3000/api"
    api_timeout_seconds: float = 10.0

    # FlowStore backend: None = in-memory, otherwise a JSON file path
    storage_path: str | None = None

    default_flow_name: str = "abonnement-aanvraag"

    # Ranking
    max_top_rated_candidates: int = 5

    @property
    def is_development(self) -> bool:
        return self.intake_env == "development"

    @property
    def is_production(self) -> bool:
        return self.intake_env == "production"


@lru_cache
def get_settings() -> IntakeSettings:
    """Get cached settings instance."""
    return IntakeSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: IntakeSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
