"""SQLite schema management (code-first approach)."""

import logging

from taskapi.core import db_client


logger = logging.getLogger(__name__)


TABLE_SCHEMAS: dict[str, str] = {
    "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'in_progress', 'completed')),
        created TEXT NOT NULL,
        updated TEXT NOT NULL
    )""",
}

INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_id ON tasks (owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks (created)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist yet."""
    conn = await db_client.get_connection(db_path=db_path)

    for name, ddl in TABLE_SCHEMAS.items():
        await conn.execute(ddl)
        logger.debug("Ensured table", extra={"table": name})

    for ddl in INDEXES:
        await conn.execute(ddl)

    await conn.commit()
    logger.info("Database schema initialized", extra={"tables": list(TABLE_SCHEMAS)})
