"""Tests for the ArcGIS council provider (HTTP mocked with pytest-httpx)."""

from __future__ import annotations

import re

import httpx
import pytest

from siteeval.providers.adapters.arcgis import ArcGISCouncilProvider
from siteeval.providers.models import ConnectionStatus, ProviderConfig
from tests.conftest import CHRISTCHURCH_SITE

BASE_URL = "https://gis.example.govt.nz/arcgis/rest/services/DistrictPlan/MapServer"


def _config(**options) -> ProviderConfig:
    defaults = {
        "zoning_layer": 12,
        "zone_field": "ZoneName",
        "zone_code_field": "ZoneCode",
        "flood_layer": 30,
        "liquefaction_layer": 31,
        "max_retries": 0,
    }
    defaults.update(options)
    return ProviderConfig(
        name="ccc",
        kind="arcgis_council",
        base_url=BASE_URL,
        description="Christchurch District Plan",
        options=defaults,
    )


def _features(**attributes) -> dict:
    return {"features": [{"attributes": attributes}]}


class TestArcGISZoning:
    @pytest.mark.asyncio
    async def test_zone_from_point_query(self, httpx_mock):
        httpx_mock.add_response(
            url=re.compile(r".*/MapServer/12/query.*"),
            method="GET",
            json=_features(ZoneName="Commercial Central City Business", ZoneCode="CCZ"),
        )
        provider = ArcGISCouncilProvider(_config())
        try:
            zoning = await provider.get_zoning(*CHRISTCHURCH_SITE)
            assert zoning is not None
            assert zoning.zone_code == "CCZ"
            assert zoning.zone == "Commercial Central City Business"
            assert zoning.source.url == f"{BASE_URL}/12"

            request = httpx_mock.get_request()
            assert request.url.params["geometry"] == "172.6362,-43.532"
            assert request.url.params["geometryType"] == "esriGeometryPoint"
            assert request.url.params["inSR"] == "4326"
            assert request.url.params["f"] == "json"
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_no_features_is_no_data(self, httpx_mock):
        httpx_mock.add_response(
            url=re.compile(r".*/MapServer/12/query.*"),
            json={"features": []},
        )
        provider = ArcGISCouncilProvider(_config())
        try:
            assert await provider.get_zoning(*CHRISTCHURCH_SITE) is None
            assert provider.health_check() == ConnectionStatus.CONNECTED
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_no_zoning_layer_configured(self):
        provider = ArcGISCouncilProvider(_config(zoning_layer=None))
        try:
            assert await provider.get_zoning(*CHRISTCHURCH_SITE) is None
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_server_error_raises_and_degrades(self, httpx_mock):
        httpx_mock.add_response(url=re.compile(r".*/MapServer/12/query.*"), status_code=503)
        provider = ArcGISCouncilProvider(_config())
        try:
            with pytest.raises(httpx.HTTPStatusError):
                await provider.get_zoning(*CHRISTCHURCH_SITE)
            assert provider.health_check() == ConnectionStatus.DEGRADED
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_server_error_retried(self, httpx_mock):
        httpx_mock.add_response(url=re.compile(r".*/MapServer/12/query.*"), status_code=502)
        httpx_mock.add_response(
            url=re.compile(r".*/MapServer/12/query.*"),
            json=_features(ZoneName="Residential Suburban", ZoneCode="RS"),
        )
        provider = ArcGISCouncilProvider(_config(max_retries=1))
        try:
            zoning = await provider.get_zoning(*CHRISTCHURCH_SITE)
            assert zoning.zone_code == "RS"
            assert len(httpx_mock.get_requests()) == 2
            assert provider.health_check() == ConnectionStatus.CONNECTED
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_error_body_raises(self, httpx_mock):
        httpx_mock.add_response(
            url=re.compile(r".*/MapServer/12/query.*"),
            json={"error": {"code": 400, "message": "Invalid or missing input parameters."}},
        )
        provider = ArcGISCouncilProvider(_config())
        try:
            with pytest.raises(RuntimeError, match="Invalid or missing input"):
                await provider.get_zoning(*CHRISTCHURCH_SITE)
        finally:
            await provider.close()


class TestArcGISHazards:
    @pytest.mark.asyncio
    async def test_flood_and_liquefaction_layers(self, httpx_mock):
        httpx_mock.add_response(
            url=re.compile(r".*/MapServer/30/query.*"),
            json=_features(FloodZone="Flood Management Area"),
        )
        httpx_mock.add_response(
            url=re.compile(r".*/MapServer/31/query.*"),
            json=_features(TCCategory="TC2"),
        )
        provider = ArcGISCouncilProvider(_config())
        try:
            hazards = await provider.get_hazards(*CHRISTCHURCH_SITE)
            assert hazards.flooding.zone == "Flood Management Area"
            assert hazards.liquefaction.category == "TC2"
            assert "possible" in hazards.liquefaction.description
            assert not hazards.liquefaction.requires_geotech_assessment
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_no_hazard_layers_configured(self):
        provider = ArcGISCouncilProvider(_config(flood_layer=None, liquefaction_layer=None))
        try:
            assert await provider.get_hazards(*CHRISTCHURCH_SITE) is None
        finally:
            await provider.close()


class TestArcGISConfig:
    def test_requires_base_url(self):
        with pytest.raises(ValueError, match="base_url"):
            ArcGISCouncilProvider(ProviderConfig(name="x", kind="arcgis_council"))
