"""Integration tests for the application lifespan."""

import pytest
from fastapi.testclient import TestClient

from taskapi.core.config import settings
from taskapi.main import app


@pytest.fixture
def app_settings(tmp_path, monkeypatch):
    """Run the app against a temporary database with a quiet worker."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "app.db"))
    monkeypatch.setattr(settings, "scan_interval_seconds", 30.0)
    monkeypatch.setattr(settings, "worker_enabled", True)
    return settings


@pytest.mark.integration
def test_lifespan_starts_and_stops_worker(app_settings, tmp_path) -> None:
    """Test the worker runs while the app is up and is stopped on shutdown."""
    with TestClient(app) as client:
        response = client.get("/health/worker")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["running"] is True
        assert data["queue_capacity"] == app_settings.queue_capacity
        worker = app.state.worker

    assert worker.running is False
    assert (tmp_path / "app.db").exists()


@pytest.mark.integration
def test_lifespan_without_worker(app_settings, monkeypatch) -> None:
    """Test the worker can be disabled by configuration."""
    monkeypatch.setattr(settings, "worker_enabled", False)

    with TestClient(app) as client:
        response = client.get("/health/worker")

        assert response.status_code == 503
        assert response.json()["status"] == "disabled"
        assert client.get("/health").status_code == 200
