"""taskapi - task records with automatic completion of stale tasks."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskapi.core import db_client
from taskapi.core.config import constants, settings
from taskapi.core.logging import configure_logfire, instrument_fastapi
from taskapi.modules.tasks.store import SqliteTaskStore
from taskapi.worker import TaskWorker


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    await db_client.init_db()
    logger.info("Database initialized")

    worker: TaskWorker | None = None
    if settings.worker_enabled:
        worker = TaskWorker(SqliteTaskStore(batch_limit=settings.scan_batch_limit), settings=settings)
        worker.start()
    else:
        logger.info("Auto-completion worker disabled")
    app.state.worker = worker

    yield

    # Shutdown
    if worker is not None:
        await worker.stop()
    await db_client.close_connection()


app = FastAPI(
    title="taskapi",
    description="Task records with automatic completion of stale tasks",
    version=constants.SERVICE_VERSION,
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/worker")
async def worker_health_check(request: Request) -> JSONResponse:
    """Auto-completion worker health with queue and scan statistics."""
    worker: TaskWorker | None = getattr(request.app.state, "worker", None)
    if worker is None:
        return JSONResponse(content={"status": "disabled", "running": False}, status_code=503)

    content = worker.status()
    return JSONResponse(content=content, status_code=200 if content["status"] == "healthy" else 503)
