"""Council GIS provider backed by an ArcGIS REST MapServer.

Most New Zealand councils publish district plan zones and hazard overlays as
ArcGIS MapServer layers. Each lookup is a point-intersect ``query`` against
one layer; the layer ids and attribute names are set in ``options``::

    options:
      zoning_layer: 12
      zone_field: ZoneName
      zone_code_field: ZoneCode
      flood_layer: 30
      flood_field: FloodZone
      liquefaction_layer: 31
      liquefaction_field: TCCategory
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from siteeval.core.types import DataSource
from siteeval.locations.sections import (
    FloodHazard,
    HazardData,
    LiquefactionHazard,
    ZoningData,
)
from siteeval.providers.base import BaseProvider
from siteeval.providers.models import ConnectionStatus, ProviderConfig

logger = logging.getLogger(__name__)

_LIQUEFACTION_DESCRIPTIONS = {
    "TC1": "Liquefaction damage is unlikely in future large earthquakes",
    "TC2": "Liquefaction damage is possible in future large earthquakes",
    "TC3": "Liquefaction damage is possible in future large earthquakes, "
    "specific engineering design required",
}


class ArcGISCouncilProvider(BaseProvider):
    """Zoning and hazard lookups against a council ArcGIS MapServer."""

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        if not config.base_url:
            raise ValueError(f"Provider {config.name!r} requires a base_url")
        self._options = config.options
        self._max_retries = int(self._options.get("max_retries", 1))
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    # -- public API ----------------------------------------------------------

    async def get_zoning(self, lat: float, lon: float) -> ZoningData | None:
        layer = self._options.get("zoning_layer")
        if layer is None:
            return None
        attrs = await self._query_point(layer, lat, lon)
        if attrs is None:
            return None
        zone = attrs.get(self._options.get("zone_field", "Zone"))
        code = attrs.get(self._options.get("zone_code_field", "ZoneCode"))
        if zone is None and code is None:
            return None
        return ZoningData(
            zone=str(zone or code),
            zone_code=str(code) if code is not None else None,
            zone_description=str(attrs.get(self._options.get("description_field", "Description")) or ""),
            district_plan=self._options.get("district_plan", ""),
            district_plan_link=self._options.get("district_plan_link"),
            source=self._source(layer),
        )

    async def get_hazards(self, lat: float, lon: float) -> HazardData | None:
        flood_layer = self._options.get("flood_layer")
        liq_layer = self._options.get("liquefaction_layer")
        if flood_layer is None and liq_layer is None:
            return None

        hazards = HazardData(source=self._source(flood_layer if flood_layer is not None else liq_layer))
        found = False
        if flood_layer is not None:
            attrs = await self._query_point(flood_layer, lat, lon)
            if attrs is not None:
                zone = attrs.get(self._options.get("flood_field", "FloodZone"))
                hazards.flooding = FloodHazard(
                    zone=str(zone) if zone is not None else None,
                    requires_flood_assessment=zone is not None,
                )
                found = True
        if liq_layer is not None:
            attrs = await self._query_point(liq_layer, lat, lon)
            if attrs is not None:
                category = str(attrs.get(self._options.get("liquefaction_field", "TCCategory")) or "")
                hazards.liquefaction = LiquefactionHazard(
                    category=category,
                    description=_LIQUEFACTION_DESCRIPTIONS.get(category, ""),
                    requires_geotech_assessment=category == "TC3",
                )
                found = True
        return hazards if found else None

    async def close(self) -> None:
        await self._http.aclose()

    # -- internals -----------------------------------------------------------

    def _source(self, layer: Any) -> DataSource:
        now = datetime.now(timezone.utc)
        return DataSource(
            name=self._config.description or self.name,
            url=f"{self._config.base_url.rstrip('/')}/{layer}",
            data_date=now,
            retrieved_at=now,
        )

    async def _query_point(self, layer: Any, lat: float, lon: float) -> dict[str, Any] | None:
        """Attributes of the first feature intersecting the point, or None."""
        params = {
            "geometry": f"{lon},{lat}",
            "geometryType": "esriGeometryPoint",
            "inSR": "4326",
            "spatialRel": "esriSpatialRelIntersects",
            "outFields": "*",
            "returnGeometry": "false",
            "f": "json",
        }
        try:
            resp = await self._get_with_retry(f"/{layer}/query", params)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("ArcGIS query failed for %s layer %s: %s", self.name, layer, exc)
            self._status = ConnectionStatus.DEGRADED
            raise

        data = resp.json()
        if "error" in data:
            # ArcGIS reports query errors with HTTP 200 and an error body
            self._status = ConnectionStatus.DEGRADED
            message = data["error"].get("message", "unknown error")
            raise RuntimeError(f"ArcGIS error from {self.name} layer {layer}: {message}")

        self._status = ConnectionStatus.CONNECTED
        features = data.get("features") or []
        if not features:
            return None
        return features[0].get("attributes") or {}

    async def _get_with_retry(self, path: str, params: dict[str, str]) -> httpx.Response:
        """GET ``path``, retrying server errors and dropped connections with backoff."""
        attempts = max(1, self._max_retries + 1)
        for attempt in range(1, attempts):
            try:
                resp = await self._http.get(path, params=params)
            except httpx.TransportError as exc:
                reason = str(exc) or type(exc).__name__
            else:
                if resp.status_code < 500:
                    return resp
                reason = f"HTTP {resp.status_code}"
            backoff = 0.5 * 2 ** (attempt - 1)
            logger.warning(
                "%s %s: %s, attempt %d of %d, retrying in %.1fs",
                self.name, path, reason, attempt, attempts, backoff,
            )
            await asyncio.sleep(backoff)
        return await self._http.get(path, params=params)
