import pytest

from backend.app.core import redis_client as redis_module


pytestmark = pytest.mark.asyncio


async def test_healthz(client):
    response = await client.get("/api/v1/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


async def test_readiness_checks_database_and_redis(client):
    response = await client.get("/api/v1/readiness")

    assert response.status_code == 200
    assert response.json() == {"ready": True}


async def test_readiness_without_redis(client, monkeypatch):
    monkeypatch.setattr(redis_module, "redis_client", None)

    response = await client.get("/api/v1/readiness")

    assert response.status_code == 503
    assert response.json() == {"error": "Redis unavailable"}


async def test_unknown_route_uses_error_body(client):
    response = await client.get("/api/v1/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
