"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import logfire
import pytest

from taskapi.core import db_client
from taskapi.core.config import settings


logger = logging.getLogger(__name__)


@pytest.fixture
async def sqlite_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[Path]:
    """Point the app at a fresh SQLite file with the schema applied."""
    db_path = tmp_path / "taskapi_test.db"
    monkeypatch.setattr(settings, "sqlite_db_path", str(db_path))

    await db_client.init_db()
    logger.info("Test database initialized", extra={"db_path": str(db_path)})

    yield db_path

    await db_client.close_connection()


@pytest.fixture(scope="session", autouse=True)
def _logfire_local_only() -> None:
    """Keep spans and logs local during tests."""
    logfire.configure(send_to_logfire=False, console=False)
