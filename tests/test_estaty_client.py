import json

import httpx
import pytest

from offplan.services.estaty_client import (
    EstatyAPIError,
    EstatyClient,
    EstatyConfigError,
    EstatyConnectionError,
)


def make_client(handler) -> EstatyClient:
    return EstatyClient(
        base_url="https://estaty.test",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


def test_missing_configuration_raises():
    with pytest.raises(EstatyConfigError):
        EstatyClient(base_url="https://estaty.test", api_key="")


@pytest.mark.asyncio
async def test_requests_are_posts_with_app_key():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"properties": [{"id": 1}, "junk"]})

    async with make_client(handler) as client:
        properties = await client.get_latest_created()

    assert properties == [{"id": 1}]
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/v1/latestCreatedProperties"
    assert seen[0].headers["App-key"] == "secret"
    assert json.loads(seen[0].content) == {}


@pytest.mark.asyncio
async def test_filter_properties_defaults_currency_and_area_unit():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"properties": []})

    async with make_client(handler) as client:
        await client.filter_properties({"city_id": ["5"], "min_price": None})
        await client.filter_properties(currency="USD", area_unit="sqm")

    assert bodies[0] == {"city_id": ["5"], "currency": "AED", "area_unit": "sqft"}
    assert bodies[1] == {"currency": "USD", "area_unit": "sqm"}


@pytest.mark.asyncio
async def test_get_property_returns_none_when_absent():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["id"] == 1:
            return httpx.Response(200, json={"property": {"id": 1, "title": "One"}})
        return httpx.Response(200, json={"message": "not found"})

    async with make_client(handler) as client:
        assert (await client.get_property(1))["title"] == "One"
        assert await client.get_property(2) is None


@pytest.mark.asyncio
async def test_non_success_status_raises_typed_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async with make_client(handler) as client:
        with pytest.raises(EstatyAPIError) as exc_info:
            await client.get_properties()

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "/api/v1/getProperties"
    assert exc_info.value.is_transient


@pytest.mark.asyncio
async def test_transport_error_raises_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with make_client(handler) as client:
        with pytest.raises(EstatyConnectionError):
            await client.get_latest_updated()


@pytest.mark.asyncio
async def test_get_filters_normalizes_aliases():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "cites": [{"id": 1, "name": "Dubai"}],
                "developer_companies": [{"id": 2, "name": "Emaar"}],
                "neighborhoods": [{"id": 3, "name": "Marina", "city_id": 1}],
                "paymentPlans": ["60/40"],
            },
        )

    async with make_client(handler) as client:
        filters = await client.get_filters()

    assert filters.cities == [{"id": 1, "name": "Dubai"}]
    assert filters.developers == [{"id": 2, "name": "Emaar"}]
    assert filters.districts[0]["name"] == "Marina"
    assert filters.payment_plans == ["60/40"]
    assert filters.amenities == []
    assert "cites" in filters.raw


@pytest.mark.asyncio
async def test_get_properties_by_ids_drops_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        property_id = json.loads(request.content)["id"]
        if property_id == 2:
            return httpx.Response(500)
        if property_id == 3:
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"property": {"id": property_id}})

    async with make_client(handler) as client:
        properties = await client.get_properties_by_ids([1, 2, 3])

    assert properties == [{"id": 1}]
