"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from siteeval.locations.models import AddressMatch, Location
from siteeval.locations.sections import LandData
from siteeval.providers.base import BaseProvider
from siteeval.providers.models import ProviderConfig, RegionBounds


CHRISTCHURCH_SITE = (-43.5320, 172.6362)

CHRISTCHURCH_BOUNDS = RegionBounds(
    name="Christchurch", min_lat=-43.65, max_lat=-43.40, min_lon=172.45, max_lon=172.80
)


def make_location(**overrides: Any) -> Location:
    """A coordinate-bearing location in central Christchurch."""
    defaults: dict[str, Any] = {
        "address": "1 Worcester Boulevard, Christchurch Central, Christchurch 8013",
        "latitude": CHRISTCHURCH_SITE[0],
        "longitude": CHRISTCHURCH_SITE[1],
    }
    defaults.update(overrides)
    return Location(**defaults)


# ---------------------------------------------------------------------------
# Stub providers
# ---------------------------------------------------------------------------


class StubProvider(BaseProvider):
    """Provider whose lookups return a canned value, raise, or stall."""

    def __init__(
        self,
        name: str,
        result: Any = None,
        error: BaseException | None = None,
        delay: float = 0.0,
        regions: list[RegionBounds] | None = None,
    ) -> None:
        super().__init__(ProviderConfig(name=name, regions=regions or []))
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.cancelled = False

    async def _answer(self, method: str, value: Any = None) -> Any:
        self.calls.append(method)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.result if value is None else value


class StubZoning(StubProvider):
    async def get_zoning(self, lat: float, lon: float) -> Any:
        return await self._answer("get_zoning")


class StubHazards(StubProvider):
    async def get_hazards(self, lat: float, lon: float) -> Any:
        return await self._answer("get_hazards")


class StubSeismic(StubProvider):
    async def get_seismic_hazard(self, lat: float, lon: float) -> Any:
        return await self._answer("get_seismic_hazard")

    async def get_nearby_faults(self, lat: float, lon: float, radius_km: float) -> list:
        return []


class StubInfrastructure(StubProvider):
    async def get_infrastructure(self, lat: float, lon: float) -> Any:
        return await self._answer("get_infrastructure")


class StubGeotech(StubProvider):
    def __init__(
        self,
        name: str,
        boreholes: list | None = None,
        cpts: list | None = None,
        reports: list | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        self.boreholes = boreholes or []
        self.cpts = cpts or []
        self.reports = reports or []

    async def get_nearby_boreholes(self, lat: float, lon: float, radius_m: float) -> list:
        return await self._answer("get_nearby_boreholes", list(self.boreholes))

    async def get_nearby_cpts(self, lat: float, lon: float, radius_m: float) -> list:
        return await self._answer("get_nearby_cpts", list(self.cpts))

    async def get_nearby_reports(self, lat: float, lon: float, radius_m: float) -> list:
        return await self._answer("get_nearby_reports", list(self.reports))


class StubClimate(StubProvider):
    def __init__(self, name: str, rainfall: Any = None, wind_zone: str | None = None, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.rainfall = rainfall
        self.wind_zone = wind_zone

    async def get_rainfall(self, lat: float, lon: float) -> Any:
        self.calls.append("get_rainfall")
        if self.error is not None:
            raise self.error
        return self.rainfall

    async def get_wind_zone(self, lat: float, lon: float) -> str | None:
        self.calls.append("get_wind_zone")
        if self.error is not None:
            raise self.error
        return self.wind_zone


class StubTitle(StubProvider):
    async def get_title(self, title_reference: str) -> Any:
        return await self._answer("get_title")


class StubGeocoder:
    """In-memory geocoder keyed by lowercase address and by title."""

    def __init__(
        self,
        matches: list[AddressMatch] | None = None,
        titles: dict[str, LandData] | None = None,
    ) -> None:
        self._matches = {m.address.lower(): m for m in matches or []}
        self._titles = titles or {}
        self.address_calls = 0
        self.title_calls = 0

    async def lookup_address(self, address: str) -> AddressMatch | None:
        self.address_calls += 1
        return self._matches.get(address.lower())

    async def get_title(self, title_reference: str) -> LandData | None:
        self.title_calls += 1
        return self._titles.get(title_reference)


@pytest.fixture
def location() -> Location:
    return make_location()
