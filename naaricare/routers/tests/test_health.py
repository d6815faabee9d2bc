"""Tests for the service status endpoint with the pool and config faked."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from naaricare.cycle.config_loader import ConfigValidationError, load_cycle_config
from naaricare.routers import health
from naaricare.services.tests.conftest import make_settings


class FakeConnection:
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def fetchval(self, query: str) -> int:
        self.queries.append(query)
        return 1


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


def _no_pool() -> FakePool:
    raise RuntimeError("Database pool not initialized; call init_pool() first")


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    config = load_cycle_config()
    monkeypatch.setattr(health, "get_settings", lambda: make_settings(ml_api_url=""))
    monkeypatch.setattr(health, "get_cycle_config", lambda: config)
    app = FastAPI()
    app.include_router(health.router)
    return TestClient(app)


def _checks(body: dict) -> dict[str, dict]:
    return {c["name"]: c for c in body["checks"]}


class TestHealth:
    def test_healthy(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        pool = FakePool()
        monkeypatch.setattr(health, "get_pool", lambda: pool)

        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "NaariCare"
        checks = _checks(body)
        assert checks["database"]["ok"] is True
        assert checks["database"]["latency_ms"] >= 0
        assert checks["cycle_config"]["detail"].startswith("v")
        assert checks["ml_scoring"]["detail"] == "local fallback only"
        assert pool.conn.queries == ["SELECT 1"]

    def test_database_down_is_degraded(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(health, "get_pool", _no_pool)

        body = client.get("/health").json()
        assert body["status"] == "degraded"
        database = _checks(body)["database"]
        assert database["ok"] is False
        assert database["latency_ms"] is None
        assert database["detail"] == "RuntimeError"

    def test_bad_engine_config_is_degraded(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken_config():
            raise ConfigValidationError("cycle_config.yaml has 1 validation error(s):\n  • x")

        monkeypatch.setattr(health, "get_pool", lambda: FakePool())
        monkeypatch.setattr(health, "get_cycle_config", broken_config)

        body = client.get("/health").json()
        assert body["status"] == "degraded"
        config_check = _checks(body)["cycle_config"]
        assert config_check["ok"] is False
        assert config_check["detail"] == "cycle_config.yaml has 1 validation error(s):"

    def test_remote_scoring_configured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(health, "get_settings", lambda: make_settings())
        monkeypatch.setattr(health, "get_pool", lambda: FakePool())
        app = FastAPI()
        app.include_router(health.router)

        body = TestClient(app).get("/health").json()
        assert _checks(body)["ml_scoring"]["detail"] == "remote"
