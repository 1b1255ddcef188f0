from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import func, select

from offplan.database import async_session_maker
from offplan.models import City, Developer, District, FloorPlan, Property, PropertyImage
from offplan.schemas.estaty import EstatyFilters
from offplan.schemas.sync import SyncOptions
from offplan.services.estaty_client import EstatyAPIError, EstatyConnectionError
from offplan.services.sync_service import PropertySyncService


def listing(external_id: int, **fields) -> Dict[str, Any]:
    payload = {
        "id": external_id,
        "title": f"Tower {external_id}",
        "developer_company_id": 1,
        "city_id": 10,
        "district_id": 100,
        "property_images": [{"image": f"https://cdn/{external_id}.jpg", "type": 1}],
    }
    payload.update(fields)
    return payload


class FakeEstatyClient:
    """In-memory stand-in for the upstream API."""

    def __init__(
        self,
        properties: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[int, Dict[str, Any]]] = None,
        latest_created: Optional[List[Dict[str, Any]]] = None,
        latest_updated: Optional[List[Dict[str, Any]]] = None,
    ):
        self.filters = EstatyFilters(
            developers=[{"id": 1, "name": "Emaar"}, {"id": 2, "name": "Damac"}],
            cities=[{"id": 10, "name": "Dubai"}],
            districts=[{"id": 100, "name": "Dubai Marina", "city_id": 10}],
        )
        self.properties = properties or []
        self.details = details or {}
        self.latest_created = latest_created or []
        self.latest_updated = latest_updated or []
        self.failures: Dict[str, List[Exception]] = {}
        self.calls: List[Any] = []

    def fail(self, method: str, *errors: Exception) -> None:
        self.failures[method] = list(errors)

    def _maybe_fail(self, method: str) -> None:
        pending = self.failures.get(method)
        if pending:
            raise pending.pop(0)

    async def get_filters(self) -> EstatyFilters:
        self.calls.append("get_filters")
        self._maybe_fail("get_filters")
        return self.filters

    async def filter_properties(self, criteria=None, **kwargs) -> List[Dict[str, Any]]:
        self.calls.append(("filter_properties", criteria))
        self._maybe_fail("filter_properties")
        return list(self.properties)

    async def get_property(self, property_id: int) -> Optional[Dict[str, Any]]:
        self.calls.append(("get_property", property_id))
        self._maybe_fail(f"get_property:{property_id}")
        return self.details.get(property_id)

    async def get_latest_created(self) -> List[Dict[str, Any]]:
        self.calls.append("get_latest_created")
        self._maybe_fail("get_latest_created")
        return list(self.latest_created)

    async def get_latest_updated(self) -> List[Dict[str, Any]]:
        self.calls.append("get_latest_updated")
        self._maybe_fail("get_latest_updated")
        return list(self.latest_updated)

    async def aclose(self) -> None:
        pass


def make_service(client: FakeEstatyClient, **kwargs) -> PropertySyncService:
    kwargs.setdefault("batch_delay_seconds", 0)
    kwargs.setdefault("max_retries", 0)
    kwargs.setdefault("retry_backoff_seconds", 0)
    return PropertySyncService(client=client, **kwargs)


async def table_counts() -> Dict[str, int]:
    async with async_session_maker() as db:
        counts = {}
        for name, model in (
            ("developers", Developer),
            ("cities", City),
            ("districts", District),
            ("properties", Property),
            ("images", PropertyImage),
            ("floor_plans", FloorPlan),
        ):
            counts[name] = (await db.execute(select(func.count()).select_from(model))).scalar()
        return counts


@pytest.mark.asyncio
async def test_full_sync_creates_everything(database):
    client = FakeEstatyClient(properties=[listing(1), listing(2), listing(3)])

    stats = await make_service(client).sync_all(SyncOptions(batch_size=2))

    assert stats.errors == []
    assert stats.developers.created == 2
    assert stats.cities.created == 1
    assert stats.districts.created == 1
    assert stats.properties.created == 3
    assert stats.images.created == 3
    assert stats.total_time_ms >= 0
    assert ("filter_properties", {"currency": "AED", "area_unit": "sqft"}) in client.calls
    assert await table_counts() == {
        "developers": 2,
        "cities": 1,
        "districts": 1,
        "properties": 3,
        "images": 3,
        "floor_plans": 0,
    }


@pytest.mark.asyncio
async def test_rerun_is_idempotent(database):
    client = FakeEstatyClient(properties=[listing(1), listing(2)])
    service = make_service(client)

    await service.sync_all()
    first = await table_counts()
    stats = await service.sync_all()

    assert await table_counts() == first
    assert stats.properties.created == 0
    assert stats.properties.updated == 2
    assert stats.developers.updated == 2

    async with async_session_maker() as db:
        slugs = (await db.execute(select(Property.slug).order_by(Property.external_id))).scalars().all()
    assert slugs == ["tower-1", "tower-2"]


@pytest.mark.asyncio
async def test_one_failing_property_does_not_stop_the_batch(database):
    summaries = [listing(i, property_images=None) for i in range(1, 5)]
    client = FakeEstatyClient(properties=summaries)
    client.fail("get_property:3", EstatyAPIError("getProperty", 404, "Not Found"))

    stats = await make_service(client).sync_all(SyncOptions(batch_size=4))

    assert stats.properties.created == 3
    assert len(stats.errors) == 1
    assert "Tower 3" in stats.errors[0]
    assert (await table_counts())["properties"] == 3


@pytest.mark.asyncio
async def test_detail_fetch_skipped_when_list_has_media(database):
    client = FakeEstatyClient(
        properties=[listing(1), listing(2, property_images=None)],
        details={2: listing(2, property_images=[{"image": "https://cdn/detail.jpg"}])},
    )

    await make_service(client).sync_all()

    detail_calls = [call for call in client.calls if isinstance(call, tuple) and call[0] == "get_property"]
    assert detail_calls == [("get_property", 2)]
    async with async_session_maker() as db:
        urls = (await db.execute(select(PropertyImage.url).order_by(PropertyImage.url))).scalars().all()
    assert urls == ["https://cdn/1.jpg", "https://cdn/detail.jpg"]


@pytest.mark.asyncio
async def test_missing_detail_falls_back_to_summary(database):
    client = FakeEstatyClient(properties=[listing(1, property_images=None)])

    stats = await make_service(client).sync_all()

    assert stats.properties.created == 1
    assert stats.errors == []


@pytest.mark.asyncio
async def test_filter_failure_is_recorded_and_properties_still_sync(database):
    client = FakeEstatyClient(properties=[listing(1, developer_name="Emaar")])
    client.fail("get_filters", EstatyConnectionError("getFilters", "connection refused"))

    stats = await make_service(client).sync_all()

    assert any(error.startswith("Filter sync failed") for error in stats.errors)
    assert stats.properties.created == 1
    # Parents were stubbed from the property itself.
    assert stats.developers.created == 1
    assert stats.cities.created == 1
    async with async_session_maker() as db:
        developer = (await db.execute(select(Developer))).scalar_one()
    assert developer.name == "Emaar"


@pytest.mark.asyncio
async def test_transient_failures_are_retried(database):
    client = FakeEstatyClient(properties=[listing(1)])
    client.fail(
        "filter_properties",
        EstatyAPIError("filterProperties", 503, "Service Unavailable"),
        EstatyConnectionError("filterProperties", "timed out"),
    )

    stats = await make_service(client, max_retries=2).sync_all()

    assert stats.errors == []
    assert stats.properties.created == 1
    assert sum(1 for call in client.calls if isinstance(call, tuple) and call[0] == "filter_properties") == 3


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(database):
    client = FakeEstatyClient(properties=[listing(1)])
    client.fail("filter_properties", EstatyAPIError("filterProperties", 401, "Unauthorized"))

    stats = await make_service(client, max_retries=2).sync_all()

    assert stats.properties.created == 0
    assert any("Property sync failed" in error for error in stats.errors)
    assert sum(1 for call in client.calls if isinstance(call, tuple) and call[0] == "filter_properties") == 1


@pytest.mark.asyncio
async def test_drafts_are_skipped_unless_requested(database):
    client = FakeEstatyClient(properties=[listing(1), listing(2, status="Draft"), listing(3, is_draft=True)])

    stats = await make_service(client).sync_all()
    assert stats.properties.created == 1

    stats = await make_service(client).sync_all(SyncOptions(include_drafts=True))
    assert stats.properties.created == 2


@pytest.mark.asyncio
async def test_skip_images_leaves_images_alone(database):
    client = FakeEstatyClient(properties=[listing(1)])
    service = make_service(client)
    await service.sync_all()

    client.properties = [listing(1, property_images=[])]
    stats = await service.sync_all(SyncOptions(skip_images=True))

    assert stats.images.created == 0
    assert (await table_counts())["images"] == 1


@pytest.mark.asyncio
async def test_incremental_sync_processes_both_lists(database):
    client = FakeEstatyClient(
        latest_created=[listing(1)],
        latest_updated=[listing(2), listing(1, title="Tower One")],
    )

    stats = await make_service(client).sync_latest_updates()

    assert stats.properties.created == 2
    assert stats.properties.updated == 1
    assert "get_filters" not in client.calls
    async with async_session_maker() as db:
        prop = (await db.execute(select(Property).where(Property.external_id == 1))).scalar_one()
    assert prop.title == "Tower One"
    assert prop.slug == "tower-1"


@pytest.mark.asyncio
async def test_incremental_list_failure_is_recorded(database):
    client = FakeEstatyClient(latest_updated=[listing(5)])
    client.fail("get_latest_created", EstatyAPIError("getLatestCreated", 500, "Server Error"))

    stats = await make_service(client).sync_latest_updates()

    assert stats.properties.created == 1
    assert len(stats.errors) == 1
    assert "created" in stats.errors[0]


@pytest.mark.asyncio
async def test_invalid_summary_is_recorded_not_raised(database):
    client = FakeEstatyClient(properties=[{"title": "No id"}, listing(2)])

    stats = await make_service(client).sync_all()

    assert stats.properties.created == 1
    assert any("No id" in error for error in stats.errors)


@pytest.mark.asyncio
async def test_non_finite_numbers_do_not_fail_the_property(database):
    client = FakeEstatyClient(
        properties=[
            listing(1, handover_year="NaN", min_price="Infinity"),
            listing(2, residential_units=[{"id": 7, "title": "B-2", "floor": "Infinity"}]),
        ]
    )

    stats = await make_service(client).sync_all()

    assert stats.errors == []
    assert stats.properties.created == 2
    assert stats.units.created == 1
    async with async_session_maker() as db:
        prop = (await db.execute(select(Property).where(Property.external_id == 1))).scalar_one()
    assert prop.handover_year is None
    assert prop.min_price is None
