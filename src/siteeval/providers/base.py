"""Provider contract: capability protocols and the base adapter class.

Each external registry is wrapped in a provider that implements one or more
capability protocols. Lookups are coroutines taking coordinates (and
sometimes a radius) and returning a payload or ``None`` for "no data";
provenance travels on the payload's ``source`` field. Providers may raise;
the orchestrator converts any exception into a data gap.
"""

from __future__ import annotations

from abc import ABC
from typing import Protocol, runtime_checkable

from siteeval.core.types import HealthStatus
from siteeval.locations.models import AddressMatch
from siteeval.locations.sections import (
    ActiveFault,
    HazardData,
    InfrastructureData,
    LandData,
    NearbyBorehole,
    NearbyCpt,
    NearbyGeotechReport,
    RainfallData,
    SeismicHazard,
    ZoningData,
)
from siteeval.providers.models import (
    Capability,
    ConnectionStatus,
    ProviderConfig,
    ProviderSchema,
    RegionBounds,
)


@runtime_checkable
class DataProvider(Protocol):
    """Every provider has a name and a pure region predicate."""

    @property
    def name(self) -> str: ...

    def supports_region(self, lat: float, lon: float) -> bool: ...


@runtime_checkable
class ZoningLookup(Protocol):
    async def get_zoning(self, lat: float, lon: float) -> ZoningData | None: ...


@runtime_checkable
class HazardLookup(Protocol):
    async def get_hazards(self, lat: float, lon: float) -> HazardData | None: ...


@runtime_checkable
class SeismicLookup(Protocol):
    async def get_seismic_hazard(self, lat: float, lon: float) -> SeismicHazard | None: ...

    async def get_nearby_faults(
        self, lat: float, lon: float, radius_km: float
    ) -> list[ActiveFault]: ...


@runtime_checkable
class InfrastructureLookup(Protocol):
    async def get_infrastructure(self, lat: float, lon: float) -> InfrastructureData | None: ...


@runtime_checkable
class GeotechLookup(Protocol):
    async def get_nearby_boreholes(
        self, lat: float, lon: float, radius_m: float
    ) -> list[NearbyBorehole]: ...

    async def get_nearby_cpts(
        self, lat: float, lon: float, radius_m: float
    ) -> list[NearbyCpt]: ...

    async def get_nearby_reports(
        self, lat: float, lon: float, radius_m: float
    ) -> list[NearbyGeotechReport]: ...


@runtime_checkable
class ClimateLookup(Protocol):
    async def get_rainfall(self, lat: float, lon: float) -> RainfallData | None: ...

    async def get_wind_zone(self, lat: float, lon: float) -> str | None: ...


@runtime_checkable
class TitleLookup(Protocol):
    async def get_title(self, title_reference: str) -> LandData | None: ...


@runtime_checkable
class Geocoder(Protocol):
    """Address and title registry used by the location resolver."""

    async def lookup_address(self, address: str) -> AddressMatch | None: ...

    async def get_title(self, title_reference: str) -> LandData | None: ...


_CAPABILITY_PROTOCOLS: list[tuple[Capability, type]] = [
    (Capability.ZONING, ZoningLookup),
    (Capability.HAZARD, HazardLookup),
    (Capability.SEISMIC, SeismicLookup),
    (Capability.INFRASTRUCTURE, InfrastructureLookup),
    (Capability.GEOTECH, GeotechLookup),
    (Capability.CLIMATE, ClimateLookup),
    (Capability.TITLE, TitleLookup),
    (Capability.GEOCODE, Geocoder),
]


def capabilities_of(provider: object) -> list[Capability]:
    """List the capability protocols an object implements."""
    return [cap for cap, proto in _CAPABILITY_PROTOCOLS if isinstance(provider, proto)]


class BaseProvider(ABC):
    """Abstract base class for provider adapters.

    Implements region dispatch from configured bounding boxes and health
    reporting. Subclasses add the lookup coroutines for the capabilities
    they support.
    """

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._status = ConnectionStatus.CONNECTED

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def regions(self) -> list[RegionBounds]:
        return self._config.regions

    @property
    def capabilities(self) -> list[Capability]:
        return capabilities_of(self)

    @property
    def schema(self) -> ProviderSchema:
        return ProviderSchema(
            name=self.name,
            kind=self._config.kind,
            description=self._config.description,
            capabilities=self.capabilities,
            regions=[r.name for r in self.regions],
            status=self._status,
        )

    def supports_region(self, lat: float, lon: float) -> bool:
        if not self._config.enabled:
            return False
        if not self.regions:
            return True
        return any(region.contains(lat, lon) for region in self.regions)

    def health_check(self) -> ConnectionStatus:
        return self._status

    def health_status(self) -> HealthStatus:
        return HealthStatus(
            service=f"provider:{self.name}",
            healthy=self._status == ConnectionStatus.CONNECTED,
            details={"kind": self._config.kind, "status": self._status.value},
        )

    async def close(self) -> None:
        """Release resources. Override if the provider holds connections."""
