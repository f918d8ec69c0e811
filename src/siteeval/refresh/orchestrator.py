"""Concurrent provider fan-out that populates a Location's cached sections.

One refresh launches a lookup task per requested category inside an
``asyncio.TaskGroup``. Tasks never raise for provider failures: each one
records its own outcome, and the orchestrator writes all settled outcomes
onto the Location after the group exits. Cancellation reaches every
in-flight provider call through the task group; outcomes that settled
before the cancellation are still written.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, Iterable

from pydantic import BaseModel, Field, ValidationError

from siteeval.core.config import RefreshConfig
from siteeval.core.types import ALL_CATEGORIES, Category, DataGap, DataSource, GapSeverity
from siteeval.locations.models import Location
from siteeval.locations.sections import (
    ClimateData,
    GeotechnicalData,
    HazardData,
    InfrastructureData,
    LandData,
    NearbyBorehole,
    NearbyCpt,
    NearbyGeotechReport,
    ZoningData,
)
from siteeval.providers.base import (
    ClimateLookup,
    GeotechLookup,
    HazardLookup,
    InfrastructureLookup,
    SeismicLookup,
    TitleLookup,
    ZoningLookup,
)
from siteeval.providers.registry import ProviderRegistry
from siteeval.refresh.staleness import categories_to_refresh

logger = logging.getLogger(__name__)

_REGION_LOOKUPS: dict[Category, tuple[type, str]] = {
    Category.ZONING: (ZoningLookup, "get_zoning"),
    Category.HAZARDS: (HazardLookup, "get_hazards"),
    Category.INFRASTRUCTURE: (InfrastructureLookup, "get_infrastructure"),
}

_PAYLOAD_MODELS: dict[Category, type[BaseModel]] = {
    Category.ZONING: ZoningData,
    Category.HAZARDS: HazardData,
    Category.GEOTECH: GeotechnicalData,
    Category.INFRASTRUCTURE: InfrastructureData,
    Category.CLIMATE: ClimateData,
    Category.LAND: LandData,
}


class RefreshResult(BaseModel):
    """What one refresh did to a Location."""

    location_id: str
    refreshed: list[Category] = Field(default_factory=list)
    skipped: list[Category] = Field(default_factory=list)
    unavailable: list[Category] = Field(default_factory=list)
    failed: list[Category] = Field(default_factory=list)
    gaps: list[DataGap] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None


@dataclass
class _Outcome:
    payload: Any = None
    error: str | None = None
    gaps: list[DataGap] = field(default_factory=list)


class ProviderOrchestrator:
    """Fan out category lookups to the registered providers."""

    def __init__(self, registry: ProviderRegistry, config: RefreshConfig | None = None) -> None:
        self._registry = registry
        self._config = config or RefreshConfig()

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def refresh(
        self,
        location: Location,
        categories: Iterable[Category | str] | None = None,
        now: datetime | None = None,
    ) -> RefreshResult:
        """Fetch stale (or explicitly listed) categories and cache them on ``location``."""
        now = now or datetime.now(timezone.utc)
        if now > datetime.now(timezone.utc):
            raise ValueError(f"Refresh time {now.isoformat()} is in the future")
        wanted = categories_to_refresh(
            location, categories, self._config.max_age_hours, now
        )
        result = RefreshResult(location_id=location.id, started_at=now)
        result.skipped = [c for c in ALL_CATEGORIES if c not in wanted]

        launch: list[Category] = []
        for category in wanted:
            if category != Category.LAND and not location.has_coordinates:
                result.skipped.append(category)
                result.gaps.append(
                    DataGap(
                        section=category.value,
                        field="coordinates",
                        reason="Location has no coordinates",
                        suggested_action="Geocode the address or enter coordinates",
                    )
                )
                continue
            launch.append(category)

        outcomes: dict[Category, _Outcome] = {}
        try:
            async with asyncio.TaskGroup() as tg:
                for category in launch:
                    tg.create_task(self._run(category, location, outcomes))
        finally:
            self._apply(location, outcomes, result, now)

        logger.info(
            "Refreshed location %s: %d refreshed, %d unavailable, %d failed, %d skipped",
            location.id,
            len(result.refreshed),
            len(result.unavailable),
            len(result.failed),
            len(result.skipped),
        )
        return result

    # -- task bodies ---------------------------------------------------------

    async def _run(self, category: Category, location: Location, outcomes: dict[Category, _Outcome]) -> None:
        try:
            if category in _REGION_LOOKUPS:
                outcome = await self._region_lookup(category, location)
            elif category == Category.GEOTECH:
                outcome = await self._geotech(location)
            elif category == Category.CLIMATE:
                outcome = await self._climate(location)
            else:
                outcome = await self._land(location)
        except Exception as exc:
            logger.warning("Lookup for %s failed on location %s: %s", category.value, location.id, exc)
            outcome = _Outcome(error=_describe(exc))
        outcomes[category] = outcome

    async def _call(self, awaitable: Awaitable[Any]) -> Any:
        async with asyncio.timeout(self._config.provider_timeout_seconds):
            return await awaitable

    async def _region_lookup(self, category: Category, location: Location) -> _Outcome:
        protocol, method = _REGION_LOOKUPS[category]
        lat, lon = location.latitude, location.longitude
        provider = self._registry.first(protocol, lat, lon)
        if provider is None:
            return _Outcome(gaps=[_no_provider_gap(category)])

        payload = _checked(category, await self._call(getattr(provider, method)(lat, lon)))
        outcome = _Outcome(payload=payload)
        if category == Category.HAZARDS and payload is not None:
            await self._enrich_seismic(payload, location, outcome)
        return outcome

    async def _enrich_seismic(self, hazards: Any, location: Location, outcome: _Outcome) -> None:
        specialist = self._registry.first(SeismicLookup, location.latitude, location.longitude)
        if specialist is None:
            return
        try:
            seismic = await self._call(
                specialist.get_seismic_hazard(location.latitude, location.longitude)
            )
        except Exception as exc:
            logger.warning("Seismic enrichment failed for location %s: %s", location.id, exc)
            outcome.gaps.append(
                DataGap(
                    section=Category.HAZARDS.value,
                    field="seismic",
                    reason=f"Seismic provider failed: {_describe(exc)}",
                    suggested_action="Check the seismic hazard model manually",
                )
            )
            return
        if seismic is not None:
            hazards.seismic = seismic

    async def _geotech(self, location: Location) -> _Outcome:
        lat, lon = location.latitude, location.longitude
        radius = self._config.geotech_search_radius_m
        providers = self._registry.matching(GeotechLookup, lat, lon)
        if not providers:
            return _Outcome(gaps=[_no_provider_gap(Category.GEOTECH)])

        calls: list[tuple[str, str, Callable[[], Awaitable[Any]]]] = []
        for p in providers:
            calls.append((p.name, "boreholes", partial(p.get_nearby_boreholes, lat, lon, radius)))
            calls.append((p.name, "cpts", partial(p.get_nearby_cpts, lat, lon, radius)))
            calls.append((p.name, "reports", partial(p.get_nearby_reports, lat, lon, radius)))
        settled = await self._settle_all([c for _, _, c in calls])

        merged: dict[str, dict[str, Any]] = {"boreholes": {}, "cpts": {}, "reports": {}}
        gaps: list[DataGap] = []
        ok = 0
        for (name, kind, _), (value, error) in zip(calls, settled):
            if error is not None:
                gaps.append(
                    DataGap(
                        section=Category.GEOTECH.value,
                        field=kind,
                        reason=f"{name} failed: {error}",
                    )
                )
                continue
            ok += 1
            for item in value or []:
                current = merged[kind].get(item.id)
                if current is None or item.distance_m < current.distance_m:
                    merged[kind][item.id] = item
        if ok == 0:
            return _Outcome(error="all geotechnical lookups failed", gaps=gaps)

        boreholes: list[NearbyBorehole] = sorted(merged["boreholes"].values(), key=lambda b: b.distance_m)
        cpts: list[NearbyCpt] = sorted(merged["cpts"].values(), key=lambda c: c.distance_m)
        reports: list[NearbyGeotechReport] = sorted(merged["reports"].values(), key=lambda r: r.distance_m)
        data = GeotechnicalData(
            boreholes=boreholes,
            cpts=cpts,
            reports=reports,
            search_radius_m=radius,
            investigation_required=not boreholes,
            recommended_investigation=_recommended_investigation(boreholes, cpts, radius),
            source=DataSource(name=", ".join(p.name for p in providers)),
        )
        return _Outcome(payload=data, gaps=gaps)

    async def _climate(self, location: Location) -> _Outcome:
        lat, lon = location.latitude, location.longitude
        providers = self._registry.matching(ClimateLookup, lat, lon)
        if not providers:
            return _Outcome(gaps=[_no_provider_gap(Category.CLIMATE)])

        calls: list[Callable[[], Awaitable[Any]]] = []
        for p in providers:
            calls.append(partial(p.get_rainfall, lat, lon))
            calls.append(partial(p.get_wind_zone, lat, lon))
        settled = await self._settle_all(calls)

        rainfall = wind_zone = None
        sources: list[str] = []
        gaps: list[DataGap] = []
        errors = 0
        for i, p in enumerate(providers):
            (rain, rain_err), (wind, wind_err) = settled[2 * i], settled[2 * i + 1]
            for kind, err in (("rainfall", rain_err), ("wind_zone", wind_err)):
                if err is not None:
                    errors += 1
                    gaps.append(
                        DataGap(section=Category.CLIMATE.value, field=kind, reason=f"{p.name} failed: {err}")
                    )
            if rainfall is None and rain is not None:
                rainfall = rain
                sources.append(p.name)
            if wind_zone is None and wind is not None:
                wind_zone = wind
                if p.name not in sources:
                    sources.append(p.name)

        if errors == len(calls):
            return _Outcome(error="all climate lookups failed", gaps=gaps)
        if rainfall is None and wind_zone is None:
            return _Outcome(gaps=gaps)
        data = ClimateData(
            wind_zone=wind_zone,
            rainfall=rainfall,
            source=DataSource(name=", ".join(sources)),
        )
        return _Outcome(payload=data, gaps=gaps)

    async def _land(self, location: Location) -> _Outcome:
        if not location.title_reference:
            return _Outcome(
                gaps=[
                    DataGap(
                        section=Category.LAND.value,
                        field="title_reference",
                        reason="No title reference known for this location",
                        suggested_action="Enter the record of title reference",
                    )
                ]
            )
        provider = self._registry.first(TitleLookup, location.latitude, location.longitude)
        if provider is None:
            return _Outcome(gaps=[_no_provider_gap(Category.LAND)])
        land = await self._call(provider.get_title(location.title_reference))
        return _Outcome(payload=_checked(Category.LAND, land))

    async def _settle_all(self, calls: list[Callable[[], Awaitable[Any]]]) -> list[tuple[Any, str | None]]:
        """Run sub-lookups concurrently, capturing each result or error."""
        results: list[tuple[Any, str | None]] = [(None, None)] * len(calls)

        async def settle(index: int, call: Callable[[], Awaitable[Any]]) -> None:
            try:
                results[index] = (await self._call(call()), None)
            except Exception as exc:
                results[index] = (None, _describe(exc))

        async with asyncio.TaskGroup() as tg:
            for i, call in enumerate(calls):
                tg.create_task(settle(i, call))
        return results

    # -- write-back ----------------------------------------------------------

    def _apply(
        self,
        location: Location,
        outcomes: dict[Category, _Outcome],
        result: RefreshResult,
        now: datetime,
    ) -> None:
        for category in ALL_CATEGORIES:
            outcome = outcomes.get(category)
            if outcome is None:
                continue
            result.gaps.extend(outcome.gaps)
            if outcome.error is not None:
                result.failed.append(category)
                result.gaps.append(
                    DataGap(
                        section=category.value,
                        field=category.value,
                        reason=f"Provider unavailable: {outcome.error}",
                        suggested_action="Retry later or enter the data manually",
                    )
                )
            elif outcome.payload is None:
                result.unavailable.append(category)
            else:
                location.store(category, outcome.payload, now)
                result.refreshed.append(category)
        if result.refreshed:
            location.last_updated = now
        result.completed_at = datetime.now(timezone.utc)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "timed out"
    if isinstance(exc, ValidationError):
        return f"invalid {exc.title} payload ({exc.error_count()} error(s))"
    return str(exc) or type(exc).__name__


def _no_provider_gap(category: Category) -> DataGap:
    return DataGap(
        section=category.value,
        field=category.value,
        reason="No provider covers this location",
        severity=GapSeverity.WARNING,
        suggested_action="Obtain the data from the council or registry directly",
    )


def _recommended_investigation(
    boreholes: list[NearbyBorehole], cpts: list[NearbyCpt], radius_m: float
) -> str:
    if not boreholes and not cpts:
        return (
            f"No investigation data within {radius_m:.0f} m. "
            "A site-specific geotechnical investigation is required."
        )
    if not boreholes:
        return "Only CPT data nearby. Boreholes are recommended to confirm soil profile."
    return (
        f"{len(boreholes)} borehole(s) within {radius_m:.0f} m. "
        "Confirm ground conditions with a site-specific assessment."
    )


def _checked(category: Category, payload: Any) -> Any:
    """Coerce a provider payload to its category model; ValidationError if it does not fit."""
    if payload is None:
        return None
    return _PAYLOAD_MODELS[category].model_validate(payload)
