"""Application configuration loaded from environment and config files."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings


class ResolverConfig(BaseSettings):
    """Location resolution and de-duplication."""

    model_config = {"env_prefix": "SITEEVAL_RESOLVER_"}

    nearby_radius_m: float = 50.0
    registry_confidence: int = 95
    coordinate_confidence: int = 50


class RefreshConfig(BaseSettings):
    """Provider fan-out and cache staleness."""

    model_config = {"env_prefix": "SITEEVAL_REFRESH_"}

    max_age_hours: float = 24.0
    provider_timeout_seconds: float = 10.0
    geotech_search_radius_m: float = 500.0


class EvaluationConfig(BaseSettings):
    """Completeness scoring and job status derivation."""

    model_config = {"env_prefix": "SITEEVAL_EVALUATION_"}

    complete_threshold_percent: float = 80.0
    job_reference_prefix: str = "JOB"


class ProviderRegistryConfig(BaseSettings):
    """Provider adapter configuration."""

    model_config = {"env_prefix": "SITEEVAL_PROVIDERS_"}

    config_path: str = "config/providers.yml"
    default_timeout_seconds: float = 10.0


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "SITEEVAL_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    providers: ProviderRegistryConfig = Field(default_factory=ProviderRegistryConfig)


def configure_logging(settings: Settings) -> None:
    """Set up root logging for scripts and embedding applications."""
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
