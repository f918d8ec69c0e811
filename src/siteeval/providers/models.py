"""Provider adapter data models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Capability(str, Enum):
    """Lookup capabilities a provider may implement."""

    ZONING = "zoning"
    HAZARD = "hazard"
    SEISMIC = "seismic"
    INFRASTRUCTURE = "infrastructure"
    GEOTECH = "geotech"
    CLIMATE = "climate"
    TITLE = "title"
    GEOCODE = "geocode"


class ConnectionStatus(str, Enum):
    """Provider connection health status."""

    CONNECTED = "connected"
    DEGRADED = "degraded"
    DISCONNECTED = "disconnected"


class RegionBounds(BaseModel):
    """A lat/lon rectangle a provider covers."""

    name: str = ""
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


class ProviderConfig(BaseModel):
    """Configuration for one provider adapter.

    An empty ``regions`` list means national coverage.
    """

    name: str
    kind: str = "mock"
    enabled: bool = True
    base_url: str = ""
    timeout_seconds: float = 10.0
    description: str = ""
    regions: list[RegionBounds] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)


class ProviderSchema(BaseModel):
    """Schema describing a provider's capabilities."""

    name: str
    kind: str = "mock"
    description: str = ""
    capabilities: list[Capability] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)
    status: ConnectionStatus = ConnectionStatus.CONNECTED
