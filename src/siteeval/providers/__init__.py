"""Data provider contract and the ordered provider registry."""

from __future__ import annotations

from siteeval.providers.base import (
    BaseProvider,
    ClimateLookup,
    DataProvider,
    Geocoder,
    GeotechLookup,
    HazardLookup,
    InfrastructureLookup,
    SeismicLookup,
    TitleLookup,
    ZoningLookup,
    capabilities_of,
)
from siteeval.providers.models import Capability, ConnectionStatus, ProviderConfig, RegionBounds
from siteeval.providers.registry import ProviderRegistry, build_registry, load_provider_configs

__all__ = [
    "BaseProvider",
    "Capability",
    "ClimateLookup",
    "ConnectionStatus",
    "DataProvider",
    "Geocoder",
    "GeotechLookup",
    "HazardLookup",
    "InfrastructureLookup",
    "ProviderConfig",
    "ProviderRegistry",
    "RegionBounds",
    "SeismicLookup",
    "TitleLookup",
    "ZoningLookup",
    "build_registry",
    "capabilities_of",
    "load_provider_configs",
]
