"""Location resolution and de-duplication.

Maps an address, title reference or coordinate pair to exactly one
canonical Location, reusing an existing record where possible so that
cached provider data is shared between evaluation jobs.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

from siteeval.core.config import ResolverConfig
from siteeval.geo.utils import (
    bounding_box,
    distance_meters,
    format_coordinates,
    is_in_country_bounds,
    is_valid_coordinate,
)
from siteeval.locations.models import AddressMatch, Location, LocationSource, LocationSummary
from siteeval.repositories import resolve

if TYPE_CHECKING:
    from siteeval.evaluation.models import EvaluationJob
    from siteeval.providers.base import Geocoder
    from siteeval.repositories.protocols import LocationRepository

logger = logging.getLogger(__name__)

_STREET_RE = re.compile(r"^(\d+[A-Za-z]?(?:/\d+[A-Za-z]?)?)\s+(.+)$")


class LocationNotFoundError(LookupError):
    """The geocoder or title registry could not identify the location."""


def parse_street(address: str) -> tuple[str | None, str | None]:
    """Split the first address line into street number and street name.

    ``"353 Barbadoes Street, Central City"`` gives ``("353", "Barbadoes Street")``.
    """
    first = address.split(",", 1)[0].strip()
    if not first:
        return None, None
    m = _STREET_RE.match(first)
    if m:
        return m.group(1), m.group(2)
    return None, first


def _same_address(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


class LocationResolver:
    """Resolve search keys to canonical, de-duplicated Locations."""

    def __init__(
        self,
        store: LocationRepository,
        geocoder: Geocoder | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self._store = store
        self._geocoder = geocoder
        self._config = config or ResolverConfig()

    @property
    def nearby_radius_m(self) -> float:
        return self._config.nearby_radius_m

    # -- lookups -------------------------------------------------------------

    async def get(self, location_id: str) -> Location:
        location = await resolve(self._store.get_by_id(location_id))
        if location is None:
            raise LocationNotFoundError(f"Location {location_id} not found")
        return location

    async def find_nearby(
        self, lat: float, lon: float, radius_m: float | None = None
    ) -> list[Location]:
        """Locations within ``radius_m`` of the point, nearest first.

        A linear scan of the store with a bounding-box pre-filter ahead of
        the exact haversine check.
        """
        radius = self.nearby_radius_m if radius_m is None else radius_m
        box = bounding_box(lat, lon, radius)
        candidates = await resolve(
            self._store.find(
                lambda loc: loc.has_coordinates and box.contains(loc.latitude, loc.longitude)
            )
        )

        hits: list[tuple[float, Location]] = []
        for loc in candidates:
            d = distance_meters(lat, lon, loc.latitude, loc.longitude)
            if d <= radius:
                hits.append((d, loc))
        hits.sort(key=lambda pair: pair[0])
        return [loc for _, loc in hits]

    async def find_by_title(self, title_reference: str) -> Location | None:
        ref = title_reference.strip()
        matches = await resolve(self._store.find(lambda loc: loc.title_reference == ref))
        return matches[0] if matches else None

    # -- resolution ----------------------------------------------------------

    async def resolve_by_address(self, address: str) -> Location:
        if not address or not address.strip():
            raise ValueError("Address is required")
        geocoder = self._require_geocoder()

        match = await geocoder.lookup_address(address.strip())
        if match is None:
            raise LocationNotFoundError(f"Address not found: {address!r}")

        nearby = await self.find_nearby(match.latitude, match.longitude)
        for loc in nearby:
            if _same_address(loc.address, match.address) or (
                match.title_reference and loc.title_reference == match.title_reference
            ):
                logger.debug("Address %r matched existing location %s", address, loc.id)
                return loc

        # A title-only record for the same parcel gets its coordinates now
        if match.title_reference:
            existing = await self.find_by_title(match.title_reference)
            if existing is not None and not existing.has_coordinates:
                self._apply_match(existing, match)
                await resolve(self._store.update(existing))
                logger.info("Backfilled coordinates for title-only location %s", existing.id)
                return existing

        location = Location(
            source=LocationSource.REGISTRY_LOOKUP,
            confidence=match.confidence if match.confidence is not None
            else self._config.registry_confidence,
        )
        self._apply_match(location, match)
        await resolve(self._store.insert(location))
        logger.info("Created location %s for %r", location.id, location.address)
        return location

    async def resolve_by_title(self, title_reference: str) -> Location:
        if not title_reference or not title_reference.strip():
            raise ValueError("Title reference is required")
        ref = title_reference.strip()

        existing = await self.find_by_title(ref)
        if existing is not None:
            return existing

        geocoder = self._require_geocoder()
        land = await geocoder.get_title(ref)
        if land is None:
            raise LocationNotFoundError(f"Title not found: {ref!r}")

        now = datetime.now(timezone.utc)
        location = Location(
            address=land.legal_description or f"Title {ref}",
            title_reference=land.title_reference or ref,
            legal_description=land.legal_description,
            site_area_m2=land.area_m2,
            source=LocationSource.TITLE_LOOKUP,
            confidence=self._config.registry_confidence,
            last_updated=now,
        )
        location.store("land", land, now)
        await resolve(self._store.insert(location))
        logger.warning("Created location %s from title %s without coordinates", location.id, ref)
        return location

    async def resolve_by_coordinates(self, lat: float, lon: float) -> Location:
        if not is_valid_coordinate(lat, lon):
            raise ValueError(f"Invalid coordinates: {lat}, {lon}")
        if not is_in_country_bounds(lat, lon):
            logger.warning("Coordinates %s fall outside New Zealand", format_coordinates(lat, lon))

        nearby = await self.find_nearby(lat, lon)
        if nearby:
            return nearby[0]

        location = Location(
            address=f"Location at {format_coordinates(lat, lon)}",
            latitude=lat,
            longitude=lon,
            source=LocationSource.COORDINATE_ENTRY,
            confidence=self._config.coordinate_confidence,
        )
        await resolve(self._store.insert(location))
        logger.info("Created coordinate-entry location %s", location.id)
        return location

    async def backfill_coordinates(self, location_id: str, lat: float, lon: float) -> Location:
        """Set coordinates on a title-only location, leaving the degraded state."""
        if not is_valid_coordinate(lat, lon):
            raise ValueError(f"Invalid coordinates: {lat}, {lon}")
        location = await self.get(location_id)
        location.latitude = lat
        location.longitude = lon
        location.last_updated = datetime.now(timezone.utc)
        await resolve(self._store.update(location))
        return location

    # -- listing -------------------------------------------------------------

    async def summaries(
        self,
        jobs: Iterable[EvaluationJob] = (),
        skip: int = 0,
        take: int = 50,
    ) -> list[LocationSummary]:
        """Location list with job counts, most recently used first."""
        counts: dict[str, int] = {}
        latest: dict[str, datetime] = {}
        for job in jobs:
            counts[job.location_id] = counts.get(job.location_id, 0) + 1
            if job.location_id not in latest or job.created_at > latest[job.location_id]:
                latest[job.location_id] = job.created_at

        locations = await resolve(self._store.list_all())
        locations.sort(
            key=lambda loc: latest.get(loc.id) or loc.last_updated or loc.created_at,
            reverse=True,
        )
        return [
            LocationSummary(
                id=loc.id,
                address=loc.address,
                title_reference=loc.title_reference,
                suburb=loc.suburb,
                city=loc.city,
                territorial_authority=loc.territorial_authority,
                latitude=loc.latitude,
                longitude=loc.longitude,
                job_count=counts.get(loc.id, 0),
                last_job_at=latest.get(loc.id),
            )
            for loc in locations[skip : skip + take]
        ]

    # -- helpers -------------------------------------------------------------

    def _require_geocoder(self) -> Geocoder:
        if self._geocoder is None:
            raise LocationNotFoundError("No geocoder configured")
        return self._geocoder

    @staticmethod
    def _apply_match(location: Location, match: AddressMatch) -> None:
        street_number, street_name = parse_street(match.address)
        location.address = match.address
        location.latitude = match.latitude
        location.longitude = match.longitude
        location.title_reference = match.title_reference or location.title_reference
        location.legal_description = match.legal_description or location.legal_description
        location.boundary = match.boundary
        location.street_number = street_number
        location.street_name = street_name
        location.suburb = match.suburb
        location.city = match.city
        location.post_code = match.post_code
        location.territorial_authority = match.territorial_authority
        location.regional_council = match.regional_council
        location.last_updated = datetime.now(timezone.utc)
