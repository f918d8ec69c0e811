"""Location models: the canonical record for one physical parcel."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from siteeval.core.types import Category
from siteeval.geo.utils import Coordinate
from siteeval.locations.sections import (
    ClimateData,
    GeotechnicalData,
    HazardData,
    InfrastructureData,
    LandData,
    ZoningData,
)


class LocationSource(StrEnum):
    """Well-known values for ``Location.source``."""

    REGISTRY_LOOKUP = "registry-lookup"
    TITLE_LOOKUP = "title-lookup"
    COORDINATE_ENTRY = "coordinate-entry"


class Location(BaseModel):
    """A unique parcel. Multiple evaluation jobs may share one Location.

    Each data category is cached on the record together with the time it
    was fetched, so jobs for the same parcel reuse earlier provider calls.
    Latitude and longitude are ``None`` only for a title-only resolution
    that has not yet been geocoded.
    """

    model_config = {"validate_assignment": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), frozen=True)

    address: str = ""
    title_reference: str | None = None
    legal_description: str | None = None
    valuation_reference: str | None = None

    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    boundary: list[Coordinate] | None = None
    site_area_m2: float | None = None

    street_number: str | None = None
    street_name: str | None = None
    suburb: str | None = None
    city: str | None = None
    post_code: str | None = None

    territorial_authority: str | None = None
    regional_council: str | None = None
    ward: str | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_updated: datetime | None = None
    source: str = LocationSource.REGISTRY_LOOKUP
    confidence: int | None = Field(default=None, ge=0, le=100)

    zoning: ZoningData | None = None
    zoning_cached_at: datetime | None = None
    hazards: HazardData | None = None
    hazards_cached_at: datetime | None = None
    geotech: GeotechnicalData | None = None
    geotech_cached_at: datetime | None = None
    infrastructure: InfrastructureData | None = None
    infrastructure_cached_at: datetime | None = None
    climate: ClimateData | None = None
    climate_cached_at: datetime | None = None
    land: LandData | None = None
    land_cached_at: datetime | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def cached(self, category: Category) -> Any:
        """Return the cached payload for a category, or None."""
        return getattr(self, Category(category).value)

    def cached_at(self, category: Category) -> datetime | None:
        return getattr(self, f"{Category(category).value}_cached_at")

    def store(self, category: Category, payload: Any, fetched_at: datetime) -> None:
        """Write a category payload and stamp its cache time.

        ``fetched_at`` may not be later than the current UTC time.
        """
        if fetched_at > datetime.now(timezone.utc):
            raise ValueError(f"Cache time {fetched_at.isoformat()} is in the future")
        name = Category(category).value
        setattr(self, name, payload)
        setattr(self, f"{name}_cached_at", fetched_at)

    def short_address(self) -> str:
        if self.suburb and self.street_name:
            number = f"{self.street_number} " if self.street_number else ""
            return f"{number}{self.street_name}, {self.suburb}"
        return self.address if len(self.address) <= 50 else self.address[:47] + "..."


class AddressMatch(BaseModel):
    """A geocoder result for an address search."""

    address: str
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    title_reference: str | None = None
    legal_description: str | None = None
    suburb: str | None = None
    city: str | None = None
    post_code: str | None = None
    territorial_authority: str | None = None
    regional_council: str | None = None
    boundary: list[Coordinate] | None = None
    confidence: int | None = None


class LocationSummary(BaseModel):
    """Compact location row for list views."""

    id: str
    address: str
    title_reference: str | None = None
    suburb: str | None = None
    city: str | None = None
    territorial_authority: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    job_count: int = 0
    last_job_at: datetime | None = None
