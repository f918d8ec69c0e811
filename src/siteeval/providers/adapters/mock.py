"""Fixture-backed providers for development and testing.

The fixtures use real Christchurch and Wellington addresses with
representative planning, hazard and geotechnical values. They stand in for
council GIS, the title registry, the geotechnical database, the seismic
hazard model and the climate service when no credentials are configured.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from siteeval.geo.utils import Coordinate, distance_meters
from siteeval.locations.models import AddressMatch
from siteeval.locations.sections import (
    ActiveFault,
    FloodHazard,
    HazardData,
    InfrastructureData,
    LandData,
    LiquefactionHazard,
    NearbyBorehole,
    NearbyCpt,
    NearbyGeotechReport,
    Owner,
    RainfallData,
    SeismicHazard,
    UtilityService,
    ZoningData,
)
from siteeval.core.types import DataSource
from siteeval.providers.base import BaseProvider
from siteeval.providers.models import ProviderConfig, RegionBounds

CHRISTCHURCH = RegionBounds(
    name="Christchurch", min_lat=-43.65, max_lat=-43.40, min_lon=172.45, max_lon=172.80
)
WELLINGTON = RegionBounds(
    name="Wellington", min_lat=-41.4, max_lat=-41.2, min_lon=174.7, max_lon=174.9
)

_FIXTURE_PARCELS: list[dict[str, Any]] = [
    {
        "address": "353 Barbadoes Street, Central City, Christchurch 8011",
        "suburb": "Central City",
        "city": "Christchurch",
        "post_code": "8011",
        "latitude": -43.5270,
        "longitude": 172.6420,
        "territorial_authority": "Christchurch City Council",
        "regional_council": "Environment Canterbury",
        "legal_description": "Pt Sec 509 Christchurch Town",
        "title_reference": "CB32A/891",
        "area_m2": 177.0,
        "zone": "Central City Residential",
        "zone_code": "CCR",
        "max_height_m": 14.0,
        "max_coverage_percent": 50.0,
        "flood_zone": "Low-Moderate",
        "liquefaction": "TC2",
        "owners": ["R J Harris", "M E Harris"],
    },
    {
        "address": "90 Armagh Street, Christchurch Central, Christchurch 8011",
        "suburb": "Christchurch Central",
        "city": "Christchurch",
        "post_code": "8011",
        "latitude": -43.5301,
        "longitude": 172.6353,
        "territorial_authority": "Christchurch City Council",
        "regional_council": "Environment Canterbury",
        "legal_description": "Lot 1 DP 12345",
        "title_reference": "CB45A/123",
        "area_m2": 450.0,
        "zone": "Commercial Central City Business",
        "zone_code": "CCZ",
        "max_height_m": 28.0,
        "max_coverage_percent": 100.0,
        "flood_zone": None,
        "liquefaction": "TC2",
        "owners": ["Armagh Holdings Limited"],
    },
    {
        "address": "1 Worcester Boulevard, Christchurch Central, Christchurch 8013",
        "suburb": "Christchurch Central",
        "city": "Christchurch",
        "post_code": "8013",
        "latitude": -43.5330,
        "longitude": 172.6365,
        "territorial_authority": "Christchurch City Council",
        "regional_council": "Environment Canterbury",
        "legal_description": "Lot 2 DP 45678",
        "title_reference": "CB52B/456",
        "area_m2": 1210.0,
        "zone": "Commercial Central City Business",
        "zone_code": "CCZ",
        "max_height_m": 28.0,
        "max_coverage_percent": 100.0,
        "flood_zone": None,
        "liquefaction": "TC2",
        "owners": ["Christchurch City Council"],
    },
    {
        "address": "101 Lambton Quay, Wellington Central, Wellington 6011",
        "suburb": "Wellington Central",
        "city": "Wellington",
        "post_code": "6011",
        "latitude": -41.2820,
        "longitude": 174.7760,
        "territorial_authority": "Wellington City Council",
        "regional_council": "Greater Wellington Regional Council",
        "legal_description": "Lot 3 DP 9876",
        "title_reference": "WN12C/345",
        "area_m2": 640.0,
        "zone": "City Centre Zone",
        "zone_code": "CCZ",
        "max_height_m": 95.0,
        "max_coverage_percent": 100.0,
        "flood_zone": "Minor",
        "liquefaction": None,
        "owners": ["Quay Properties Limited"],
    },
]

_FIXTURE_BOREHOLES: list[dict[str, Any]] = [
    {"id": "BH-117001", "latitude": -43.5268, "longitude": 172.6431, "depth_m": 15.0,
     "description": "Silty sand over sandy gravel, groundwater 1.4 m"},
    {"id": "BH-117342", "latitude": -43.5281, "longitude": 172.6402, "depth_m": 20.0,
     "description": "Sandy gravel with silt lenses"},
    {"id": "BH-200410", "latitude": -41.2826, "longitude": 174.7752, "depth_m": 25.0,
     "description": "Reclamation fill over marine silts"},
]

_FIXTURE_CPTS: list[dict[str, Any]] = [
    {"id": "CPT-55012", "latitude": -43.5273, "longitude": 172.6415, "depth_m": 12.5},
    {"id": "CPT-55190", "latitude": -43.5318, "longitude": 172.6370, "depth_m": 18.0},
]

_FIXTURE_REPORTS: list[dict[str, Any]] = [
    {"id": "RPT-8812", "title": "Barbadoes Street geotechnical assessment",
     "latitude": -43.5266, "longitude": 172.6425, "author": "Tonkin + Taylor"},
    {"id": "RPT-9120", "title": "Lambton Quay basement investigation",
     "latitude": -41.2818, "longitude": 174.7765, "author": "WSP"},
]

# Approximate reference points for nearby-fault distance estimates.
_FIXTURE_FAULTS: list[dict[str, Any]] = [
    {"name": "Port Hills Fault", "latitude": -43.59, "longitude": 172.68,
     "fault_type": "Oblique reverse", "max_magnitude": 6.2},
    {"name": "Greendale Fault", "latitude": -43.58, "longitude": 172.18,
     "fault_type": "Dextral strike-slip", "max_magnitude": 7.1},
    {"name": "Wellington Fault", "latitude": -41.24, "longitude": 174.79,
     "fault_type": "Dextral strike-slip", "recurrence_interval": "~840 years",
     "slip_rate": "6-7 mm/year", "max_magnitude": 7.5},
    {"name": "Alpine Fault", "latitude": -43.40, "longitude": 170.60,
     "fault_type": "Dextral reverse", "recurrence_interval": "~300 years",
     "slip_rate": "27 mm/year", "max_magnitude": 8.1},
]

_REGION_Z_VALUES = {
    "Auckland": 0.13,
    "Hamilton": 0.13,
    "Tauranga": 0.19,
    "Wellington": 0.40,
    "Nelson": 0.27,
    "Christchurch": 0.30,
    "Queenstown": 0.30,
    "Dunedin": 0.13,
}

_REGION_RAINFALL_MM = {
    "Auckland": 1240,
    "Hamilton": 1200,
    "Tauranga": 1350,
    "Wellington": 1250,
    "Nelson": 1000,
    "Christchurch": 620,
    "Queenstown": 900,
    "Dunedin": 800,
}

# Depth multipliers per return period and duration, applied to a regional base.
_RAINFALL_PROFILE = {
    "10yr": {"10min": 0.22, "60min": 0.57, "1440min": 1.30},
    "100yr": {"10min": 0.38, "60min": 0.93, "1440min": 2.10},
}


def region_name(lat: float, lon: float) -> str:
    """Coarse New Zealand region for static lookup tables."""
    if lat > -37.5:
        return "Auckland"
    if lat > -38.5:
        return "Hamilton" if lon < 176 else "Tauranga"
    if lat > -42:
        return "Wellington" if lon > 174 else "Nelson"
    if lat > -44 and lon > 172:
        return "Christchurch"
    if lat > -45.5 and lon < 170:
        return "Queenstown"
    return "Dunedin"


def _source(name: str, url: str, notes: str | None = None) -> DataSource:
    now = datetime.now(timezone.utc)
    return DataSource(name=name, url=url, data_date=now, retrieved_at=now, notes=notes)


def _nearest(
    rows: list[dict[str, Any]], lat: float, lon: float, radius_m: float
) -> list[tuple[float, dict[str, Any]]]:
    hits = []
    for row in rows:
        d = distance_meters(lat, lon, row["latitude"], row["longitude"])
        if d <= radius_m:
            hits.append((d, row))
    hits.sort(key=lambda pair: pair[0])
    return hits


class MockCouncilProvider(BaseProvider):
    """Council GIS stand-in: zoning, hazards and three-waters infrastructure.

    Answers from the nearest fixture parcel within ``options.match_radius_m``
    (default 1 km); returns no data elsewhere in its region.
    """

    def __init__(self, config: ProviderConfig | None = None) -> None:
        if config is None:
            config = ProviderConfig(
                name="mock_council",
                description="Fixture council GIS",
                regions=[CHRISTCHURCH, WELLINGTON],
            )
        super().__init__(config)
        self._parcels = list(_FIXTURE_PARCELS)
        self._match_radius_m = float(config.options.get("match_radius_m", 1000.0))

    def _parcel(self, lat: float, lon: float) -> dict[str, Any] | None:
        hits = _nearest(self._parcels, lat, lon, self._match_radius_m)
        return hits[0][1] if hits else None

    async def get_zoning(self, lat: float, lon: float) -> ZoningData | None:
        parcel = self._parcel(lat, lon)
        if parcel is None:
            return None
        return ZoningData(
            zone=parcel["zone"],
            zone_code=parcel["zone_code"],
            district_plan=f"{parcel['city']} District Plan",
            max_height_m=parcel["max_height_m"],
            max_coverage_percent=parcel["max_coverage_percent"],
            source=_source(self.name, self._config.base_url or "fixture://council"),
        )

    async def get_hazards(self, lat: float, lon: float) -> HazardData | None:
        parcel = self._parcel(lat, lon)
        if parcel is None:
            return None
        hazards = HazardData(source=_source(self.name, self._config.base_url or "fixture://council"))
        if parcel["flood_zone"]:
            hazards.flooding = FloodHazard(zone=parcel["flood_zone"])
        if parcel["liquefaction"]:
            hazards.liquefaction = LiquefactionHazard(
                category=parcel["liquefaction"],
                requires_geotech_assessment=parcel["liquefaction"] == "TC3",
            )
        return hazards

    async def get_infrastructure(self, lat: float, lon: float) -> InfrastructureData | None:
        parcel = self._parcel(lat, lon)
        if parcel is None:
            return None
        provider = parcel["territorial_authority"]
        return InfrastructureData(
            water=UtilityService(available=True, provider=provider),
            wastewater=UtilityService(available=True, provider=provider),
            stormwater=UtilityService(available=True, provider=provider),
            source=_source(self.name, self._config.base_url or "fixture://council"),
        )


class MockLandRegistry(BaseProvider):
    """Address geocoder and title register backed by fixture parcels."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        if config is None:
            config = ProviderConfig(name="mock_land_registry", description="Fixture title register")
        super().__init__(config)
        self._by_address = {p["address"].lower(): p for p in _FIXTURE_PARCELS}
        self._by_title = {p["title_reference"]: p for p in _FIXTURE_PARCELS}

    async def lookup_address(self, address: str) -> AddressMatch | None:
        key = address.strip().lower()
        parcel = self._by_address.get(key)
        if parcel is None:
            # Partial match fallback
            for full, candidate in self._by_address.items():
                if key and (key in full or full in key):
                    parcel = candidate
                    break
        if parcel is None:
            return None
        return AddressMatch(
            address=parcel["address"],
            latitude=parcel["latitude"],
            longitude=parcel["longitude"],
            title_reference=parcel["title_reference"],
            legal_description=parcel["legal_description"],
            suburb=parcel["suburb"],
            city=parcel["city"],
            post_code=parcel["post_code"],
            territorial_authority=parcel["territorial_authority"],
            regional_council=parcel["regional_council"],
        )

    async def get_title(self, title_reference: str) -> LandData | None:
        parcel = self._by_title.get(title_reference.strip().upper())
        if parcel is None:
            return None
        return LandData(
            title_reference=parcel["title_reference"],
            title_type="Freehold",
            title_status="Live",
            legal_description=parcel["legal_description"],
            area_m2=parcel["area_m2"],
            owners=[Owner(name=n) for n in parcel["owners"]],
            source=_source(self.name, self._config.base_url or "fixture://title-register"),
        )


class MockSeismicProvider(BaseProvider):
    """Static seismic hazard model (regional Z-values and a small fault table)."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        if config is None:
            config = ProviderConfig(name="mock_seismic", description="Static seismic hazard model")
        super().__init__(config)

    async def get_nearby_faults(self, lat: float, lon: float, radius_km: float) -> list[ActiveFault]:
        faults = []
        for distance_m, row in _nearest(_FIXTURE_FAULTS, lat, lon, radius_km * 1000):
            faults.append(
                ActiveFault(
                    name=row["name"],
                    distance_km=round(distance_m / 1000, 1),
                    fault_type=row.get("fault_type"),
                    recurrence_interval=row.get("recurrence_interval"),
                    slip_rate=row.get("slip_rate"),
                    max_magnitude=row.get("max_magnitude"),
                )
            )
        return faults

    async def get_seismic_hazard(self, lat: float, lon: float) -> SeismicHazard | None:
        z = _REGION_Z_VALUES.get(region_name(lat, lon), 0.20)
        faults = await self.get_nearby_faults(lat, lon, 50.0)
        near_fault = 1.0
        if faults and faults[0].distance_km < 2:
            near_fault = 1.2
        return SeismicHazard(
            zone="High" if z >= 0.3 else "Moderate" if z >= 0.18 else "Low",
            zone_factor=z,
            site_class="C",
            near_fault_factor=near_fault,
            pga=round(z * near_fault, 3),
            design_standard="NZS 1170.5:2004",
            nearby_faults=faults,
            source=_source(
                self.name,
                "fixture://seismic",
                notes="Site class assumed as C. Verify with geotechnical investigation.",
            ),
        )


class MockGeotechProvider(BaseProvider):
    """Geotechnical database stand-in with fixture boreholes, CPTs and reports."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        if config is None:
            config = ProviderConfig(name="mock_geotech", description="Fixture geotechnical database")
        super().__init__(config)

    async def get_nearby_boreholes(
        self, lat: float, lon: float, radius_m: float
    ) -> list[NearbyBorehole]:
        return [
            NearbyBorehole(
                id=row["id"],
                distance_m=round(d, 1),
                latitude=row["latitude"],
                longitude=row["longitude"],
                depth_m=row["depth_m"],
                description=row["description"],
            )
            for d, row in _nearest(_FIXTURE_BOREHOLES, lat, lon, radius_m)
        ]

    async def get_nearby_cpts(self, lat: float, lon: float, radius_m: float) -> list[NearbyCpt]:
        return [
            NearbyCpt(
                id=row["id"],
                distance_m=round(d, 1),
                latitude=row["latitude"],
                longitude=row["longitude"],
                depth_m=row["depth_m"],
            )
            for d, row in _nearest(_FIXTURE_CPTS, lat, lon, radius_m)
        ]

    async def get_nearby_reports(
        self, lat: float, lon: float, radius_m: float
    ) -> list[NearbyGeotechReport]:
        return [
            NearbyGeotechReport(
                id=row["id"],
                title=row["title"],
                distance_m=round(d, 1),
                author=row["author"],
            )
            for d, row in _nearest(_FIXTURE_REPORTS, lat, lon, radius_m)
        ]


class MockClimateProvider(BaseProvider):
    """Regional climate estimates (rainfall depths and NZS 3604 wind zone)."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        if config is None:
            config = ProviderConfig(name="mock_climate", description="Regional climate estimates")
        super().__init__(config)

    async def get_rainfall(self, lat: float, lon: float) -> RainfallData | None:
        region = region_name(lat, lon)
        annual = _REGION_RAINFALL_MM.get(region, 1000)
        base = annual / 10
        return RainfallData(
            annual_mean_mm=annual,
            station=f"Estimated from {region} regional data",
            depths={
                period: {duration: round(base * factor, 1) for duration, factor in profile.items()}
                for period, profile in _RAINFALL_PROFILE.items()
            },
            climate_change_factors={"2040_RCP45": 1.06, "2090_RCP85": 1.24},
            source=_source(self.name, "fixture://climate", notes="Regional estimates only."),
        )

    async def get_wind_zone(self, lat: float, lon: float) -> str | None:
        if -41.5 <= lat <= -40.8 and 174.5 <= lon <= 175.5:
            return "Very High"
        if lat > -35.5 or lat < -46 or (lon < 172.5 and lat < -42):
            return "High"
        return "Medium"


def fixture_point(index: int = 0) -> Coordinate:
    """Coordinates of a fixture parcel, handy for demos and tests."""
    parcel = _FIXTURE_PARCELS[index]
    return Coordinate(latitude=parcel["latitude"], longitude=parcel["longitude"])
