# ============================================================================
# API ROUTE TESTS
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Tests - HTTP boundary
# PURPOSE: Verify lease endpoints, error mapping and health probes
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Route Tests

Endpoint tests run a real LeaseTable over an in-memory store; error
mapping tests swap in an AsyncMock table.

Run with:
    pytest tests/test_routes.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import router, set_services
from core.config import LeaseDefaults
from core.errors import LeaseNotFound, PersistenceFailure, ResourceExhausted
from health import HealthCheckRegistry, health_router
import health.router as health_router_module
from health.checks import (
    LeaseStoreCheck,
    LeaseTableCheck,
    SweeperCheck,
    set_lease_store,
    set_lease_table,
    set_sweeper,
)
from services.lease_table import LeaseTable
from sweeper import ExpirySweeper

from fakes import FakeClock, InMemoryLeaseStore


# ============================================================================
# FIXTURES
# ============================================================================

def _make_test_app(lease_table, sweeper=None):
    """Create a test FastAPI app with lease routes."""
    app = FastAPI()
    app.include_router(router)
    set_services(lease_table=lease_table, sweeper=sweeper)
    return app


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryLeaseStore()


@pytest.fixture
def table(store, clock):
    config = LeaseDefaults(min_port=8000, max_port=8002, default_ttl_seconds=60)
    return asyncio.run(LeaseTable.open(store, config, clock))


@pytest.fixture
def client(table):
    with TestClient(_make_test_app(table)) as test_client:
        yield test_client
    set_services(None)


# ============================================================================
# LEASE ENDPOINTS
# ============================================================================

class TestAllocateEndpoint:
    """POST /alloc"""

    def test_allocate(self, client):
        resp = client.post("/alloc", json={"service_name": "web", "ttl_seconds": 30, "tags": ["dev"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["port"] == 8000
        assert body["lease"]["service_name"] == "web"
        assert body["lease"]["ttl_seconds"] == 30
        assert body["lease"]["tags"] == ["dev"]
        assert body["lease"]["allocated_at"] == body["lease"]["last_heartbeat"]

    def test_allocate_uses_default_ttl(self, client):
        resp = client.post("/alloc", json={"service_name": "web"})

        assert resp.json()["lease"]["ttl_seconds"] == 60

    def test_exhaustion_is_503(self, client):
        for i in range(3):
            assert client.post("/alloc", json={"service_name": f"s{i}"}).status_code == 200

        resp = client.post("/alloc", json={"service_name": "late"})

        assert resp.status_code == 503
        assert "8000-8002" in resp.json()["detail"]

    def test_missing_service_name_is_422(self, client):
        assert client.post("/alloc", json={}).status_code == 422

    def test_non_positive_ttl_is_422(self, client):
        resp = client.post("/alloc", json={"service_name": "web", "ttl_seconds": 0})
        assert resp.status_code == 422

    def test_ttl_beyond_integer_column_is_422(self, client, store):
        resp = client.post("/alloc", json={"service_name": "web", "ttl_seconds": 2**31})

        assert resp.status_code == 422
        assert "upsert" not in store.ops()

    def test_largest_ttl_is_accepted(self, client):
        resp = client.post("/alloc", json={"service_name": "web", "ttl_seconds": 2**31 - 1})

        assert resp.status_code == 200

    def test_blank_service_name_is_400(self, client):
        resp = client.post("/alloc", json={"service_name": "   "})
        assert resp.status_code == 400

    def test_store_failure_is_500(self, client, store):
        store.fail_on.add("upsert")

        resp = client.post("/alloc", json={"service_name": "web"})

        assert resp.status_code == 500
        assert client.get("/list").json() == []


class TestReleaseEndpoint:
    """POST /release"""

    def test_release(self, client):
        client.post("/alloc", json={"service_name": "web"})

        resp = client.post("/release", json={"port": 8000})

        assert resp.status_code == 200
        assert resp.json() == {"status": "released", "port": 8000}
        assert client.get("/list").json() == []

    def test_release_unknown_is_404(self, client):
        resp = client.post("/release", json={"port": 8001})

        assert resp.status_code == 404
        assert "8001" in resp.json()["detail"]

    def test_invalid_port_is_422(self, client):
        assert client.post("/release", json={"port": 70000}).status_code == 422


class TestHeartbeatEndpoint:
    """POST /heartbeat"""

    def test_heartbeat(self, client, clock):
        client.post("/alloc", json={"service_name": "web", "ttl_seconds": 30})
        clock.advance(10)

        resp = client.post("/heartbeat", json={"port": 8000})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["port"] == 8000
        assert body["expires_at"].startswith("2026-10-19T12:00:40")

    def test_heartbeat_unknown_is_404(self, client):
        assert client.post("/heartbeat", json={"port": 8000}).status_code == 404


class TestReadEndpoints:
    """GET /list, /lookup and /status"""

    def test_list(self, client):
        client.post("/alloc", json={"service_name": "a"})
        client.post("/alloc", json={"service_name": "b"})

        leases = client.get("/list").json()

        assert sorted(lease["port"] for lease in leases) == [8000, 8001]

    def test_lookup_found(self, client):
        client.post("/alloc", json={"service_name": "a"})
        client.post("/alloc", json={"service_name": "b"})

        body = client.get("/lookup", params={"service": "b"}).json()

        assert body["port"] == 8001
        assert body["all_ports"] == [8001]
        assert body["lease"]["service_name"] == "b"

    def test_lookup_not_found(self, client):
        resp = client.get("/lookup", params={"service": "nobody"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["port"] is None
        assert body["lease"] is None
        assert body["all_ports"] == []

    def test_lookup_requires_service(self, client):
        assert client.get("/lookup").status_code == 422

    def test_status(self, client):
        client.post("/alloc", json={"service_name": "a"})

        body = client.get("/status").json()

        assert body["min_port"] == 8000
        assert body["max_port"] == 8002
        assert body["capacity"] == 3
        assert body["active_leases"] == 1
        assert body["default_ttl_seconds"] == 60


# ============================================================================
# ERROR MAPPING
# ============================================================================

class TestErrorMapping:
    """Lease errors raised by the table map onto status codes."""

    def _client(self, **table_methods):
        table = MagicMock()
        for name, side_effect in table_methods.items():
            setattr(table, name, AsyncMock(side_effect=side_effect))
        return TestClient(_make_test_app(table))

    def test_release_persistence_failure(self):
        client = self._client(release=PersistenceFailure("down", operation="delete", port=8000))

        resp = client.post("/release", json={"port": 8000})

        assert resp.status_code == 500

    def test_heartbeat_persistence_failure(self):
        client = self._client(renew=PersistenceFailure("down"))

        assert client.post("/heartbeat", json={"port": 8000}).status_code == 500

    def test_heartbeat_not_found(self):
        client = self._client(renew=LeaseNotFound(8000, operation="renew"))

        assert client.post("/heartbeat", json={"port": 8000}).status_code == 404

    def test_allocate_exhausted(self):
        client = self._client(allocate=ResourceExhausted(1, 2))

        resp = client.post("/alloc", json={"service_name": "web"})

        assert resp.status_code == 503
        assert resp.json()["detail"] == "No free port in range 1-2"

    def test_uninitialized_table_is_500(self):
        app = FastAPI()
        app.include_router(router)
        set_services(None)

        assert TestClient(app).get("/list").status_code == 500


# ============================================================================
# HEALTH PROBES
# ============================================================================

class TestHealthProbes:
    """Health endpoints over the lease store, table and sweeper checks."""

    @pytest.fixture
    def health_client(self, monkeypatch, table, store):
        registry = HealthCheckRegistry()
        for check in (LeaseStoreCheck(), LeaseTableCheck(), SweeperCheck()):
            registry.register(check)
        monkeypatch.setattr(health_router_module, "get_registry", lambda: registry)

        sweeper = MagicMock(spec=ExpirySweeper)
        sweeper.is_running = True
        sweeper.stats = {"running": True, "errors": 0}

        set_lease_store(store)
        set_lease_table(table)
        set_sweeper(sweeper)

        app = FastAPI()
        app.include_router(health_router)
        with TestClient(app) as test_client:
            yield test_client, sweeper

        set_lease_store(None)
        set_lease_table(None)
        set_sweeper(None)

    def test_livez(self, health_client):
        client, _ = health_client
        body = client.get("/livez").json()

        assert body["status"] == "alive"

    def test_readyz_ready(self, health_client):
        client, _ = health_client
        resp = client.get("/readyz")

        assert resp.status_code == 200
        assert resp.json()["status"] == "ready"

    def test_readyz_store_down(self, health_client, store):
        client, _ = health_client
        store.fail_on.add("ping")

        resp = client.get("/readyz")

        assert resp.status_code == 503
        assert "lease_store" in resp.json()["checks"]

    def test_health_sweeper_stopped(self, health_client):
        client, sweeper = health_client
        sweeper.is_running = False

        resp = client.get("/health")

        assert resp.status_code == 503
        body = resp.json()
        assert body["checks"]["sweeper"]["status"] == "unhealthy"
        assert body["checks"]["lease_table"]["status"] == "healthy"

    def test_readyz_ignores_sweeper(self, health_client):
        client, sweeper = health_client
        sweeper.is_running = False

        assert client.get("/readyz").status_code == 200

    def test_table_exhausted_is_degraded(self, health_client, table):
        client, _ = health_client
        for i in range(3):
            asyncio.run(table.allocate(f"s{i}"))

        resp = client.get("/health")

        assert resp.status_code == 206
        body = resp.json()
        assert body["checks"]["lease_table"]["status"] == "degraded"
        assert body["checks"]["lease_table"]["details"]["free_ports"] == 0

    def test_readyz_with_exhausted_table(self, health_client, table):
        client, _ = health_client
        for i in range(3):
            asyncio.run(table.allocate(f"s{i}"))

        resp = client.get("/readyz")

        assert resp.status_code == 200
        assert resp.json()["status"] == "ready"
