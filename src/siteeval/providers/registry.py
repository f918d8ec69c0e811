"""Ordered provider registry.

The registry is an explicit, ordered list built once at startup and handed
to the orchestrator. Registration order is the dispatch order: when several
providers cover the same region, the first registered one wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, TypeVar

import yaml

from siteeval.providers.base import BaseProvider, DataProvider
from siteeval.providers.models import ConnectionStatus, ProviderConfig, ProviderSchema

logger = logging.getLogger(__name__)

P = TypeVar("P")


class ProviderRegistry:
    """Registry for provider adapters. Provides ordered dispatch and health checking."""

    def __init__(self, providers: list[DataProvider] | None = None) -> None:
        self._providers: list[DataProvider] = []
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: DataProvider) -> None:
        """Append a provider; its position is its dispatch priority."""
        if self.get(provider.name) is not None:
            raise ValueError(f"Provider {provider.name!r} is already registered")
        self._providers.append(provider)

    def get(self, name: str) -> DataProvider | None:
        for provider in self._providers:
            if provider.name == name:
                return provider
        return None

    @property
    def providers(self) -> tuple[DataProvider, ...]:
        return tuple(self._providers)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    def first(self, capability: type[P], lat: float | None, lon: float | None) -> P | None:
        """First provider implementing ``capability`` that covers the point.

        With no coordinates, region filtering is skipped.
        """
        for provider in self.matching(capability, lat, lon):
            return provider
        return None

    def matching(self, capability: type[P], lat: float | None, lon: float | None) -> list[P]:
        """All providers implementing ``capability`` that cover the point, in order."""
        found: list[Any] = []
        for provider in self._providers:
            if not isinstance(provider, capability):
                continue
            if lat is not None and lon is not None and not provider.supports_region(lat, lon):
                continue
            found.append(provider)
        return found

    def list_providers(self) -> list[ProviderSchema]:
        return [p.schema for p in self._providers if isinstance(p, BaseProvider)]

    def health_check_all(self) -> dict[str, ConnectionStatus]:
        return {
            p.name: p.health_check()
            for p in self._providers
            if isinstance(p, BaseProvider)
        }

    async def close(self) -> None:
        for provider in self._providers:
            if isinstance(provider, BaseProvider):
                await provider.close()


def load_provider_configs(path: str | Path) -> list[ProviderConfig]:
    """Read provider definitions from YAML, preserving file order."""
    with open(path) as fh:
        data = yaml.safe_load(fh) or {}

    configs: list[ProviderConfig] = []
    for entry in data.get("providers", []):
        configs.append(ProviderConfig(**entry))
    return configs


def build_registry(configs: list[ProviderConfig]) -> ProviderRegistry:
    """Instantiate enabled providers in config order."""
    from siteeval.providers.adapters import create_provider

    registry = ProviderRegistry()
    for config in configs:
        if not config.enabled:
            logger.info("Skipping disabled provider %s", config.name)
            continue
        registry.register(create_provider(config))
    logger.info("Provider registry ready: %s", ", ".join(registry.provider_names) or "(empty)")
    return registry
