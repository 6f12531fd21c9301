"""Health Probes — liveness always up; readiness needs database and gateway."""

from types import SimpleNamespace

import pytest

from app.main import app


async def _healthy():
    return True


@pytest.fixture
def lifespan_state(gateway):
    """Simulate what the lifespan puts on app.state; restored afterwards."""
    saved = {k: getattr(app.state, k, None) for k in ("db_manager", "payment_gateway")}
    app.state.db_manager = SimpleNamespace(health_check=_healthy)
    app.state.payment_gateway = gateway
    yield app.state
    for key, value in saved.items():
        setattr(app.state, key, value)


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["service"] == "book-porter-api"


async def test_ready_when_database_and_gateway_present(client, lifespan_state):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"] == {"database": "healthy", "payment_gateway": "configured"}


async def test_not_ready_without_database(client, lifespan_state):
    lifespan_state.db_manager = None
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_not_ready_without_gateway(client, lifespan_state):
    lifespan_state.payment_gateway = None
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "gateway_unavailable"
