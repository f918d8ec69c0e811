"""Cached data section payloads returned by providers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from siteeval.core.types import DataSource


# -- Zoning --


class PlanningOverlay(BaseModel):
    name: str
    type: str = ""
    description: str = ""
    rules_link: str | None = None


class ZoningData(BaseModel):
    """District plan zoning and built-form standards."""

    zone: str = ""
    zone_code: str | None = None
    zone_description: str = ""
    district_plan: str = ""
    max_height_m: float | None = None
    max_coverage_percent: float | None = None
    min_front_setback_m: float | None = None
    min_side_setback_m: float | None = None
    min_rear_setback_m: float | None = None
    max_impervious_percent: float | None = None
    density_standard: str | None = None
    max_units_per_site: int | None = None
    min_site_area_m2: float | None = None
    permitted_activities: list[str] = Field(default_factory=list)
    overlays: list[PlanningOverlay] = Field(default_factory=list)
    district_plan_link: str | None = None
    source: DataSource | None = None


# -- Hazards --


class FloodHazard(BaseModel):
    zone: str | None = None
    description: str = ""
    flood_level: str | None = None
    floor_level_requirement_m: float | None = None
    requires_flood_assessment: bool = False


class LiquefactionHazard(BaseModel):
    category: str = ""
    description: str = ""
    foundation_guidance: str | None = None
    requires_geotech_assessment: bool = False


class ActiveFault(BaseModel):
    name: str
    distance_km: float
    fault_type: str | None = None
    recurrence_interval: str | None = None
    slip_rate: str | None = None
    max_magnitude: float | None = None


class SeismicHazard(BaseModel):
    """Seismic design parameters (NZS 1170.5 style)."""

    zone: str = ""
    zone_factor: float | None = None
    site_class: str | None = None
    near_fault_factor: float | None = None
    pga: float | None = None
    design_standard: str | None = None
    nearby_faults: list[ActiveFault] = Field(default_factory=list)
    source: DataSource | None = None


class ContaminationStatus(BaseModel):
    on_hail: bool = False
    on_llur: bool = False
    status: str | None = None
    description: str | None = None


class HazardSummary(BaseModel):
    hazard_type: str
    severity: str
    description: str = ""
    action: str | None = None


class HazardData(BaseModel):
    """Natural hazards from the regional council, enriched with seismic data."""

    flooding: FloodHazard | None = None
    liquefaction: LiquefactionHazard | None = None
    seismic: SeismicHazard | None = None
    coastal_erosion: bool = False
    coastal_inundation: bool = False
    slope_instability: bool = False
    subsidence: bool = False
    wildfire: bool = False
    contamination: ContaminationStatus | None = None
    summary: list[HazardSummary] = Field(default_factory=list)
    source: DataSource | None = None


# -- Geotechnical --


class SoilLayer(BaseModel):
    top_depth_m: float
    bottom_depth_m: float
    description: str = ""
    soil_type: str | None = None


class NearbyBorehole(BaseModel):
    id: str
    distance_m: float
    latitude: float
    longitude: float
    depth_m: float | None = None
    date: datetime | None = None
    description: str | None = None
    source_url: str | None = None
    soil_layers: list[SoilLayer] = Field(default_factory=list)


class NearbyCpt(BaseModel):
    id: str
    distance_m: float
    latitude: float
    longitude: float
    depth_m: float | None = None
    date: datetime | None = None
    source_url: str | None = None


class NearbyGeotechReport(BaseModel):
    id: str
    title: str
    distance_m: float
    author: str | None = None
    date: datetime | None = None
    source_url: str | None = None


class GeotechnicalData(BaseModel):
    """Investigation data near the site, merged across geotechnical registries."""

    site_class: str | None = None
    boreholes: list[NearbyBorehole] = Field(default_factory=list)
    cpts: list[NearbyCpt] = Field(default_factory=list)
    reports: list[NearbyGeotechReport] = Field(default_factory=list)
    search_radius_m: float = 500.0
    soil_description: str | None = None
    investigation_required: bool = False
    recommended_investigation: str | None = None
    source: DataSource | None = None


# -- Infrastructure --


class UtilityService(BaseModel):
    """A piped or networked service (water, wastewater, stormwater, gas, power)."""

    available: bool = False
    provider: str | None = None
    main_size: str | None = None
    distance_to_main_m: float | None = None
    notes: str | None = None


class Communications(BaseModel):
    fibre_available: bool = False
    fibre_provider: str | None = None
    copper_available: bool = False


class RoadAccess(BaseModel):
    road_name: str | None = None
    classification: str | None = None
    owner: str | None = None
    speed_limit: str | None = None


class InfrastructureData(BaseModel):
    water: UtilityService | None = None
    wastewater: UtilityService | None = None
    stormwater: UtilityService | None = None
    power: UtilityService | None = None
    gas: UtilityService | None = None
    communications: Communications | None = None
    roads: RoadAccess | None = None
    source: DataSource | None = None


# -- Climate --


class RainfallData(BaseModel):
    """Design rainfall depths keyed by return period then duration (mm)."""

    annual_mean_mm: float | None = None
    station: str | None = None
    depths: dict[str, dict[str, float]] = Field(default_factory=dict)
    climate_change_factors: dict[str, float] = Field(default_factory=dict)
    source: DataSource | None = None

    def depth(self, return_period: str, duration: str) -> float:
        return self.depths.get(return_period, {}).get(duration, 0.0)

    def intensity(self, return_period: str, duration: str) -> float:
        """Rainfall intensity in mm/hr for a duration such as ``"60min"``."""
        depth = self.depth(return_period, duration)
        try:
            minutes = int(duration.removesuffix("min"))
        except ValueError:
            return 0.0
        if depth == 0 or minutes == 0:
            return 0.0
        return depth / minutes * 60

    def adjusted_depth(self, return_period: str, duration: str, scenario: str) -> float:
        return self.depth(return_period, duration) * self.climate_change_factors.get(scenario, 1.0)


class TemperatureData(BaseModel):
    annual_mean_max_c: float | None = None
    annual_mean_min_c: float | None = None
    frost_days_per_year: int | None = None


class ClimateData(BaseModel):
    wind_zone: str | None = None
    basic_wind_speed_ms: float | None = None
    rainfall: RainfallData | None = None
    temperature: TemperatureData | None = None
    climate_zone: str | None = None
    source: DataSource | None = None


# -- Land / title --


class Owner(BaseModel):
    name: str
    share: str | None = None


class Instrument(BaseModel):
    """An easement, covenant or other registered encumbrance."""

    type: str
    description: str | None = None
    in_favour_of: str | None = None
    document_reference: str | None = None


class SurveyPlan(BaseModel):
    reference: str
    type: str | None = None
    date: datetime | None = None


class LandData(BaseModel):
    """Title register information."""

    title_reference: str | None = None
    title_type: str | None = None
    title_status: str | None = None
    legal_description: str | None = None
    lot_number: str | None = None
    dp_number: str | None = None
    area_m2: float | None = None
    owners: list[Owner] = Field(default_factory=list)
    easements: list[Instrument] = Field(default_factory=list)
    covenants: list[Instrument] = Field(default_factory=list)
    encumbrances: list[Instrument] = Field(default_factory=list)
    survey_plans: list[SurveyPlan] = Field(default_factory=list)
    source: DataSource | None = None
