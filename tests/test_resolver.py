"""Tests for location resolution and de-duplication."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from siteeval.core.config import ResolverConfig
from siteeval.evaluation.models import EvaluationJob
from siteeval.locations.models import AddressMatch, LocationSource
from siteeval.locations.resolver import LocationNotFoundError, LocationResolver, parse_street
from siteeval.locations.sections import LandData
from siteeval.locations.store import LocationStore
from siteeval.providers.adapters.mock import MockLandRegistry
from tests.conftest import CHRISTCHURCH_SITE, StubGeocoder, make_location

BARBADOES = "353 Barbadoes Street, Central City, Christchurch 8011"

# One degree of latitude is ~111,195 m
_M = 1 / 111_195


def _resolver(geocoder=None, **config) -> tuple[LocationResolver, LocationStore]:
    store = LocationStore()
    return LocationResolver(store, geocoder, ResolverConfig(**config)), store


class TestParseStreet:
    def test_number_and_name(self) -> None:
        assert parse_street(BARBADOES) == ("353", "Barbadoes Street")

    def test_unit_number(self) -> None:
        assert parse_street("2/14A Hereford Street, Christchurch") == ("2/14A", "Hereford Street")

    def test_no_number(self) -> None:
        assert parse_street("Cathedral Square, Christchurch") == (None, "Cathedral Square")

    def test_empty(self) -> None:
        assert parse_street("") == (None, None)


class TestResolveByAddress:
    @pytest.mark.asyncio
    async def test_creates_location_from_geocoder(self) -> None:
        resolver, store = _resolver(MockLandRegistry())
        loc = await resolver.resolve_by_address(BARBADOES)

        assert loc.address == BARBADOES
        assert loc.latitude == -43.5270
        assert loc.title_reference == "CB32A/891"
        assert loc.street_number == "353"
        assert loc.street_name == "Barbadoes Street"
        assert loc.source == LocationSource.REGISTRY_LOOKUP
        assert loc.confidence == 95
        assert store.location_count == 1

    @pytest.mark.asyncio
    async def test_idempotent(self) -> None:
        resolver, store = _resolver(MockLandRegistry())
        first = await resolver.resolve_by_address(BARBADOES)
        second = await resolver.resolve_by_address(BARBADOES.upper())
        assert first.id == second.id
        assert store.location_count == 1

    @pytest.mark.asyncio
    async def test_title_match_within_radius(self) -> None:
        match = AddressMatch(
            address="Unit 2, 353 Barbadoes Street, Christchurch",
            latitude=-43.5270 + 10 * _M,
            longitude=172.6420,
            title_reference="CB32A/891",
        )
        resolver, store = _resolver(StubGeocoder([match]))
        existing = make_location(
            address=BARBADOES, latitude=-43.5270, longitude=172.6420, title_reference="CB32A/891"
        )
        store.insert(existing)

        loc = await resolver.resolve_by_address(match.address)
        assert loc.id == existing.id

    @pytest.mark.asyncio
    async def test_identifier_beats_proximity(self) -> None:
        target = make_location(
            address=BARBADOES, latitude=-43.5270 + 30 * _M, longitude=172.6420
        )
        closer = make_location(
            address="351 Barbadoes Street, Central City, Christchurch 8011",
            latitude=-43.5270 + 5 * _M,
            longitude=172.6420,
        )
        match = AddressMatch(address=BARBADOES, latitude=-43.5270, longitude=172.6420)
        resolver, store = _resolver(StubGeocoder([match]))
        store.insert(target)
        store.insert(closer)

        loc = await resolver.resolve_by_address(BARBADOES)
        assert loc.id == target.id

    @pytest.mark.asyncio
    async def test_adjacent_parcel_not_merged(self) -> None:
        neighbour = make_location(
            address="351 Barbadoes Street, Central City, Christchurch 8011",
            latitude=-43.5270,
            longitude=172.6420,
        )
        resolver, store = _resolver(MockLandRegistry())
        store.insert(neighbour)

        loc = await resolver.resolve_by_address(BARBADOES)
        assert loc.id != neighbour.id
        assert store.location_count == 2

    @pytest.mark.asyncio
    async def test_geocoder_confidence_used(self) -> None:
        match = AddressMatch(address="5 Oak Lane, Rangiora", latitude=-43.30, longitude=172.59, confidence=70)
        resolver, _ = _resolver(StubGeocoder([match]))
        loc = await resolver.resolve_by_address("5 Oak Lane, Rangiora")
        assert loc.confidence == 70

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        resolver, store = _resolver(MockLandRegistry())
        with pytest.raises(LocationNotFoundError):
            await resolver.resolve_by_address("1 Nowhere Road, Nowhere")
        assert store.location_count == 0

    @pytest.mark.asyncio
    async def test_empty_address(self) -> None:
        resolver, _ = _resolver(MockLandRegistry())
        with pytest.raises(ValueError):
            await resolver.resolve_by_address("   ")

    @pytest.mark.asyncio
    async def test_backfills_title_only_location(self) -> None:
        resolver, store = _resolver(MockLandRegistry())
        title_only = await resolver.resolve_by_title("CB32A/891")
        assert not title_only.has_coordinates

        loc = await resolver.resolve_by_address(BARBADOES)
        assert loc.id == title_only.id
        assert loc.has_coordinates
        assert store.location_count == 1


class TestResolveByTitle:
    @pytest.mark.asyncio
    async def test_store_hit_makes_no_network_call(self) -> None:
        geocoder = StubGeocoder()
        resolver, store = _resolver(geocoder)
        existing = make_location(title_reference="CB45A/123")
        store.insert(existing)

        loc = await resolver.resolve_by_title("CB45A/123")
        assert loc.id == existing.id
        assert geocoder.title_calls == 0

    @pytest.mark.asyncio
    async def test_creates_degraded_location(self) -> None:
        land = LandData(title_reference="CB52B/456", legal_description="Lot 2 DP 45678", area_m2=1210)
        geocoder = StubGeocoder(titles={"CB52B/456": land})
        resolver, store = _resolver(geocoder)

        loc = await resolver.resolve_by_title("CB52B/456")
        assert loc.latitude is None and loc.longitude is None
        assert not loc.has_coordinates
        assert loc.source == LocationSource.TITLE_LOOKUP
        assert loc.site_area_m2 == 1210
        assert loc.land.title_reference == "CB52B/456"
        assert loc.land_cached_at is not None
        assert store.location_count == 1

    @pytest.mark.asyncio
    async def test_unknown_title(self) -> None:
        resolver, store = _resolver(StubGeocoder())
        with pytest.raises(LocationNotFoundError):
            await resolver.resolve_by_title("ZZ9/999")
        assert store.location_count == 0


class TestResolveByCoordinates:
    @pytest.mark.asyncio
    async def test_creates_placeholder(self) -> None:
        resolver, _ = _resolver()
        loc = await resolver.resolve_by_coordinates(*CHRISTCHURCH_SITE)
        assert loc.address == "Location at -43.532000, 172.636200"
        assert loc.source == LocationSource.COORDINATE_ENTRY
        assert loc.confidence == 50

    @pytest.mark.asyncio
    async def test_ten_metres_is_same_location(self) -> None:
        resolver, store = _resolver()
        first = await resolver.resolve_by_coordinates(*CHRISTCHURCH_SITE)
        second = await resolver.resolve_by_coordinates(CHRISTCHURCH_SITE[0] + 10 * _M, CHRISTCHURCH_SITE[1])
        assert first.id == second.id
        assert store.location_count == 1

    @pytest.mark.asyncio
    async def test_one_kilometre_is_distinct(self) -> None:
        resolver, store = _resolver()
        first = await resolver.resolve_by_coordinates(*CHRISTCHURCH_SITE)
        second = await resolver.resolve_by_coordinates(CHRISTCHURCH_SITE[0] + 1000 * _M, CHRISTCHURCH_SITE[1])
        assert first.id != second.id
        assert store.location_count == 2

    @pytest.mark.asyncio
    async def test_same_location_across_antimeridian(self) -> None:
        resolver, store = _resolver()
        first = await resolver.resolve_by_coordinates(-44.0, 179.9999)
        second = await resolver.resolve_by_coordinates(-44.0, -179.9999)
        assert first.id == second.id
        assert store.location_count == 1

    @pytest.mark.asyncio
    async def test_nearest_wins(self) -> None:
        resolver, store = _resolver()
        far = make_location(latitude=CHRISTCHURCH_SITE[0] + 40 * _M)
        near = make_location(latitude=CHRISTCHURCH_SITE[0] + 20 * _M)
        store.insert(far)
        store.insert(near)
        loc = await resolver.resolve_by_coordinates(*CHRISTCHURCH_SITE)
        assert loc.id == near.id

    @pytest.mark.asyncio
    async def test_invalid_coordinates(self) -> None:
        resolver, store = _resolver()
        with pytest.raises(ValueError):
            await resolver.resolve_by_coordinates(95.0, 172.0)
        assert store.location_count == 0


class TestFindNearby:
    @pytest.mark.asyncio
    async def test_ordered_by_distance(self) -> None:
        resolver, store = _resolver()
        a = make_location(latitude=CHRISTCHURCH_SITE[0] + 300 * _M)
        b = make_location(latitude=CHRISTCHURCH_SITE[0] + 100 * _M)
        c = make_location(latitude=CHRISTCHURCH_SITE[0] + 2_000 * _M)
        no_coords = make_location(latitude=None, longitude=None)
        for loc in (a, b, c, no_coords):
            store.insert(loc)

        found = await resolver.find_nearby(*CHRISTCHURCH_SITE, 500)
        assert [loc.id for loc in found] == [b.id, a.id]

    @pytest.mark.asyncio
    async def test_default_radius(self) -> None:
        resolver, store = _resolver(nearby_radius_m=50)
        store.insert(make_location(latitude=CHRISTCHURCH_SITE[0] + 60 * _M))
        assert await resolver.find_nearby(*CHRISTCHURCH_SITE) == []


class TestBackfillAndSummaries:
    @pytest.mark.asyncio
    async def test_backfill_coordinates(self) -> None:
        resolver, store = _resolver()
        loc = make_location(latitude=None, longitude=None, title_reference="CB1/1")
        store.insert(loc)

        updated = await resolver.backfill_coordinates(loc.id, *CHRISTCHURCH_SITE)
        assert updated.has_coordinates
        assert store.get_by_id(loc.id).latitude == CHRISTCHURCH_SITE[0]

    @pytest.mark.asyncio
    async def test_backfill_rejects_invalid(self) -> None:
        resolver, store = _resolver()
        loc = make_location(latitude=None, longitude=None)
        store.insert(loc)
        with pytest.raises(ValueError):
            await resolver.backfill_coordinates(loc.id, 0.0, 200.0)

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        resolver, _ = _resolver()
        with pytest.raises(LocationNotFoundError):
            await resolver.get("nope")

    @pytest.mark.asyncio
    async def test_summaries_count_jobs(self) -> None:
        resolver, store = _resolver()
        busy = make_location(address="A")
        quiet = make_location(address="B", latitude=-43.6)
        store.insert(busy)
        store.insert(quiet)
        now = datetime.now(timezone.utc)
        jobs = [
            EvaluationJob(location_id=busy.id, created_at=now - timedelta(days=2)),
            EvaluationJob(location_id=busy.id, created_at=now),
        ]

        summaries = await resolver.summaries(jobs)
        assert [s.address for s in summaries] == ["A", "B"]
        assert summaries[0].job_count == 2
        assert summaries[0].last_job_at == now
        assert summaries[1].job_count == 0

        assert len(await resolver.summaries(jobs, skip=1, take=1)) == 1
