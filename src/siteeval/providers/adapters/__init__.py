"""Provider adapter kinds."""

from __future__ import annotations

from siteeval.providers.adapters.arcgis import ArcGISCouncilProvider
from siteeval.providers.adapters.mock import (
    MockClimateProvider,
    MockCouncilProvider,
    MockGeotechProvider,
    MockLandRegistry,
    MockSeismicProvider,
)
from siteeval.providers.base import BaseProvider
from siteeval.providers.models import ProviderConfig

PROVIDER_KINDS: dict[str, type[BaseProvider]] = {
    "arcgis_council": ArcGISCouncilProvider,
    "mock_council": MockCouncilProvider,
    "mock_land_registry": MockLandRegistry,
    "mock_seismic": MockSeismicProvider,
    "mock_geotech": MockGeotechProvider,
    "mock_climate": MockClimateProvider,
}


def create_provider(config: ProviderConfig) -> BaseProvider:
    """Factory: instantiate a provider adapter based on config.kind."""
    kind = config.kind.lower()
    if kind not in PROVIDER_KINDS:
        available = ", ".join(sorted(PROVIDER_KINDS))
        raise ValueError(f"Unknown provider kind {config.kind!r}. Available: {available}")
    return PROVIDER_KINDS[kind](config)


__all__ = [
    "PROVIDER_KINDS",
    "ArcGISCouncilProvider",
    "MockClimateProvider",
    "MockCouncilProvider",
    "MockGeotechProvider",
    "MockLandRegistry",
    "MockSeismicProvider",
    "create_provider",
]
