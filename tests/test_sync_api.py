import pytest
from fastapi.testclient import TestClient

from offplan.api.sync import get_sync_service
from offplan.main import app
from offplan.schemas.sync import SyncStats
from offplan.services.sync_lock import SyncCooldownLock


class FakeSyncService:
    def __init__(self, error: Exception = None):
        self.error = error
        self.calls = []

    async def sync_all(self, options=None):
        self.calls.append(("full", options))
        if self.error:
            raise self.error
        stats = SyncStats()
        stats.properties.created = 4
        return stats

    async def sync_latest_updates(self, options=None):
        self.calls.append(("incremental", options))
        if self.error:
            raise self.error
        stats = SyncStats()
        stats.properties.updated = 2
        return stats


class FrozenClock:
    now = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def sync_service():
    service = FakeSyncService()
    app.dependency_overrides[get_sync_service] = lambda: service
    app.state.sync_lock = SyncCooldownLock(300, clock=FrozenClock())
    yield service
    app.dependency_overrides.clear()


@pytest.fixture
def client(sync_service):
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["estaty_configured"] is True


def test_default_request_runs_incremental_sync(client, sync_service):
    response = client.post("/api/sync")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Incremental sync completed successfully"
    assert body["data"]["properties"]["updated"] == 2
    assert [call[0] for call in sync_service.calls] == ["incremental"]


def test_full_request_passes_options(client, sync_service):
    response = client.post("/api/sync", json={"type": "full", "batch_size": 25, "skip_images": True})

    assert response.status_code == 200
    assert response.json()["data"]["properties"]["created"] == 4
    mode, options = sync_service.calls[0]
    assert mode == "full"
    assert options.batch_size == 25
    assert options.skip_images is True


def test_force_runs_full_sync(client, sync_service):
    client.post("/api/sync", json={"force": True})
    assert sync_service.calls[0][0] == "full"


def test_malformed_body_is_treated_as_empty(client, sync_service):
    response = client.post("/api/sync", content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    assert sync_service.calls[0][0] == "incremental"


def test_invalid_parameters_return_400(client, sync_service):
    response = client.post("/api/sync", json={"batch_size": 0})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid sync parameters"
    assert body["details"]
    assert sync_service.calls == []
    assert app.state.sync_lock.is_running() is False


def test_concurrent_trigger_is_rate_limited(client, sync_service):
    app.state.sync_lock.try_acquire()

    response = client.post("/api/sync", json={"type": "full"})

    assert response.status_code == 429
    assert response.json() == {
        "success": False,
        "error": "Sync is rate limited. Try again in 300 seconds.",
        "retry_after": 300,
    }
    assert sync_service.calls == []


def test_failed_sync_returns_500_and_releases_lock(client, sync_service):
    sync_service.error = RuntimeError("database is locked")

    response = client.post("/api/sync", json={"type": "full"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Synchronization failed",
        "details": "database is locked",
    }
    assert app.state.sync_lock.is_running() is False

    sync_service.error = None
    assert client.post("/api/sync").status_code == 200


def test_status_reports_lock_state(client):
    app.state.sync_lock.try_acquire()

    response = client.get("/api/sync")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_running"] is True
    assert data["cooldown_remaining"] == 300
    assert data["last_sync_time"] is not None
    assert data["stats"] is None


def test_status_includes_table_counts(client):
    response = client.get("/api/sync", params={"include_stats": "true"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_running"] is False
    assert set(data["stats"]) == {
        "developers",
        "cities",
        "districts",
        "properties",
        "units",
        "images",
        "floor_plans",
    }
