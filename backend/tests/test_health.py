"""Health check, metrics and basic app tests."""
import asyncio
import importlib
import sys

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

import app.main as app_main
from app.config import settings
from app.database import watch_slow_queries
from app.middleware.metrics import get_counter, increment, render_metrics


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    generated = await client.get("/health")
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_openapi_schema(client):
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "CMS Workflow API"
    assert "/api/v1/workflow/submit" in schema["paths"]
    assert "/api/v1/versions/rollback" in schema["paths"]


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    await client.get("/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "audit_write_failures_total" in response.text


def test_labelled_counter():
    before = get_counter("workflow_transitions_total", action="approve")
    increment("workflow_transitions_total", action="approve")
    assert get_counter("workflow_transitions_total", action="approve") == before + 1
    assert 'workflow_transitions_total{action="approve"}' in render_metrics()


async def test_slow_queries_are_counted(monkeypatch):
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    watch_slow_queries(engine.sync_engine)
    monkeypatch.setattr(settings, "DB_SLOW_QUERY_MS", 0)
    before = get_counter("db_slow_queries_total")

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await engine.dispose()

    assert get_counter("db_slow_queries_total") >= before + 1


def test_app_import_leaves_event_loop_policy_alone(monkeypatch):
    calls = []
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.setattr(asyncio, "set_event_loop_policy", calls.append)

    importlib.reload(app_main)

    assert calls == []
