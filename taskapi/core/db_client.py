"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from taskapi.core.config import settings
from taskapi.core.errors import DatabaseError, RecordNotFoundError


logger = logging.getLogger(__name__)

__all__ = [
    "DatabaseError",
    "RecordNotFoundError",
    "close_connection",
    "conditional_update",
    "create_record",
    "delete_record",
    "get_connection",
    "get_record",
    "init_db",
    "list_records",
    "parse_filter",
    "sanitize_param",
    "update_record",
]


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _validate_field_name(field: str) -> None:
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", field):
        msg = f"Invalid field name: {field}"
        raise ValueError(msg)


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in a double-quoted filter value via json.dumps."""
    return json.dumps(str(value))[1:-1]


# Double-quoted values may carry json.dumps escapes (see sanitize_param);
# single-quoted values are taken literally.
_COMPARISON_RE = re.compile(r"""(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(?:"((?:[^"\\]|\\.)*)"|'([^']*)')""")


def _escape_like(value: str) -> str:
    return value.replace("%", "\\%").replace("_", "\\_")


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


def _parse_single_comparison(comparison: str) -> tuple[str, str]:
    """Parse a single comparison expression into a SQL condition and parameter.

    Quoted values are always bound as strings; stored ids like "007" must not
    be coerced to numbers.
    """
    match = _COMPARISON_RE.fullmatch(comparison)
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field, op, double_quoted, single_quoted = match.groups()
    if double_quoted is not None:
        try:
            value = json.loads(f'"{double_quoted}"')
        except json.JSONDecodeError as e:
            msg = f"Invalid filter syntax: {comparison}"
            raise ValueError(msg) from e
    else:
        value = single_quoted

    sql_op = _get_sql_operator(op)
    if sql_op == "LIKE":
        return f"{field} LIKE ? ESCAPE '\\'", f"%{_escape_like(value)}%"
    return f"{field} {sql_op} ?", value


def _split_top_level(expression: str, separator: str) -> list[str]:
    """Split on ``separator`` outside quoted values and parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0
    quote: str | None = None
    i = 0

    while i < len(expression):
        char = expression[i]
        if quote is not None:
            current += char
            if quote == '"' and char == "\\" and i + 1 < len(expression):
                current += expression[i + 1]
                i += 1
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
            current += char
        elif paren_depth == 0 and expression.startswith(separator, i):
            parts.append(current.strip())
            current = ""
            i += len(separator)
            continue
        else:
            if char == "(":
                paren_depth += 1
            elif char == ")":
                paren_depth -= 1
            current += char
        i += 1

    if current.strip():
        parts.append(current.strip())

    return parts


def _parse_or_group(or_group: str) -> tuple[str, list[str]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    or_conditions = []
    or_params = []

    for part in _split_top_level(or_group[1:-1], "||"):
        cond, value = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.append(value)

    return f"({' OR '.join(or_conditions)})", or_params


def parse_filter(filter_query: str) -> tuple[str, list[str]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list.

    Example:
        (status = "pending" || status = "in_progress") && created < "2026-01-01T00:00:00.000000Z"

    Embed untrusted values with ``sanitize_param``.
    """
    if not filter_query:
        return "", []

    conditions = []
    params = []

    for part in _split_top_level(filter_query, "&&"):
        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
            conditions.append(cond)
            params.extend(cond_params)
        else:
            cond, value = _parse_single_comparison(part)
            conditions.append(cond)
            params.append(value)

    return " AND ".join(conditions), params


def _to_db_value(val: Any) -> Any:
    if isinstance(val, datetime):
        return val.isoformat()
    if isinstance(val, dict | list):
        return json.dumps(val)
    return val


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_event_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        cached_conn = _db_connections[cache_key]
        if not loop.is_closed():
            return cached_conn
        async with _db_lock:
            _db_connections.pop(cache_key, None)

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_event_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            if cache_key in _db_connections:
                conn = _db_connections[cache_key]
                await conn.close()
                del _db_connections[cache_key]
                logger.info(
                    "Closed SQLite connection",
                    extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
                )
    except Exception as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from taskapi.core import schema

    await schema.init_db(db_path=db_path)


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it as stored.

    The caller supplies the ``id`` field.
    """
    if "id" not in data:
        msg = "Record data must include an id"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        columns = list(data.keys())
        for column in columns:
            _validate_field_name(column)
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_to_db_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - names are validated
        await conn.execute(query, values)
        await conn.commit()

        result = await get_record(collection=collection, record_id=str(data["id"]))

        logger.info("Created record", extra={"collection": collection, "record_id": data["id"]})
        return result
    except Exception as e:
        if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
            logger.error("Table not found", extra={"collection": collection})
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            raise DatabaseError(msg) from e
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise DatabaseError(msg) from e


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (record_id,))
        row = await cursor.fetchone()

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        columns = [description[0] for description in cursor.description]
        record = dict(zip(columns, row, strict=True))

        logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
        return record
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to get record from {collection}: {e}"
        raise DatabaseError(msg) from e


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        for key in data:
            _validate_field_name(key)
        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_to_db_value(val) for val in data.values()]
        values.append(record_id)

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - names are validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await get_record(collection=collection, record_id=record_id)
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to update record in {collection}: {e}"
        raise DatabaseError(msg) from e


async def conditional_update(
    *,
    collection: str,
    record_id: str,
    data: dict[str, Any],
    field: str,
    allowed_values: list[str],
) -> bool:
    """Update a record only while ``field`` holds one of ``allowed_values``.

    The check and the write happen in one UPDATE statement.

    Returns:
        True if the row was updated, False if the record is missing or the
        precondition no longer holds.
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)
    if not allowed_values:
        return False

    try:
        _validate_collection_name(collection)
        _validate_field_name(field)
        for key in data:
            _validate_field_name(key)
        conn = await get_connection()

        set_clause = ", ".join(f"{key} = ?" for key in data)
        placeholders = ", ".join("?" for _ in allowed_values)
        values = [_to_db_value(val) for val in data.values()]
        values.append(record_id)
        values.extend(allowed_values)

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ? AND {field} IN ({placeholders})"  # noqa: S608 - names are validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        applied = cursor.rowcount == 1
        logger.debug(
            "Conditional update",
            extra={"collection": collection, "record_id": record_id, "applied": applied},
        )
        return applied
    except Exception as e:
        logger.error(
            "conditional_update_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
        )
        msg = f"Failed to update record in {collection}: {e}"
        raise DatabaseError(msg) from e


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (record_id,))
        await conn.commit()

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to delete record from {collection}: {e}"
        raise DatabaseError(msg) from e


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause = ""
        params: list[Any] = []
        if filter_query:
            where_clause, params = parse_filter(filter_query)
            where_clause = f"WHERE {where_clause}"

        # Only allow: column_name [ASC|DESC]
        safe_sort = "id ASC"
        if sort:
            sort_pattern = re.match(r"^[A-Za-z_][A-Za-z0-9_]*\s*(ASC|DESC)?$", sort.strip(), re.IGNORECASE)
            if sort_pattern:
                safe_sort = sort.strip()
            else:
                logger.warning("Invalid sort parameter, using default", extra={"sort": sort})

        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {safe_sort} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        columns = [description[0] for description in cursor.description]
        records = [dict(zip(columns, row, strict=True)) for row in rows]

        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise DatabaseError(msg) from e
