"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from taskapi.core.config import Settings
from tests.unit.mocks import FakeClock, FakeTaskStore, InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches taskapi.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("taskapi.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("taskapi.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("taskapi.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("taskapi.core.db_client.conditional_update", in_memory_db.conditional_update)
    monkeypatch.setattr("taskapi.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("taskapi.core.db_client.list_records", in_memory_db.list_records)
    return in_memory_db


@pytest.fixture
def clock():
    """Controllable clock starting at a fixed UTC instant."""
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store(clock):
    """In-memory TaskStore sharing the test clock."""
    return FakeTaskStore(clock)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build worker settings with fast timings; keyword overrides win."""

    def _make(**overrides) -> Settings:
        values = {
            "auto_complete_minutes": 30,
            "scan_interval_seconds": 0.05,
            "scan_on_start": False,
            "queue_capacity": 100,
            "scan_enqueue_timeout_seconds": 0.05,
            "submit_timeout_seconds": 0.2,
            "store_timeout_seconds": 1.0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
