"""SQLite-backed database access shared by the runtime stores."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Union

SCHEMA = """
CREATE TABLE IF NOT EXISTS llm_backends (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    base_url TEXT NOT NULL,
    type TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ollama_models (
    id TEXT PRIMARY KEY,
    model TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS llm_pool (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    purpose_type TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS llm_pool_backend_assignments (
    pool_id TEXT NOT NULL REFERENCES llm_pool(id) ON DELETE CASCADE,
    backend_id TEXT NOT NULL REFERENCES llm_backends(id) ON DELETE CASCADE,
    assigned_at TEXT NOT NULL,
    PRIMARY KEY (pool_id, backend_id)
);

CREATE TABLE IF NOT EXISTS ollama_model_assignments (
    model_id TEXT NOT NULL REFERENCES ollama_models(id) ON DELETE CASCADE,
    llm_pool_id TEXT NOT NULL REFERENCES llm_pool(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (model_id, llm_pool_id)
);

CREATE TABLE IF NOT EXISTS job_queue_v2 (
    id TEXT PRIMARY KEY,
    task_type TEXT NOT NULL,
    payload BLOB,
    scheduled_for INTEGER NOT NULL DEFAULT 0,
    valid_until INTEGER NOT NULL DEFAULT 0,
    retry_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS remote_hooks (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    endpoint_url TEXT NOT NULL,
    method TEXT NOT NULL,
    timeout_ms INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

TABLES = frozenset(
    {
        "llm_backends",
        "ollama_models",
        "llm_pool",
        "llm_pool_backend_assignments",
        "ollama_model_assignments",
        "job_queue_v2",
        "kv",
        "remote_hooks",
    }
)


class StoreError(Exception):
    """Raised when a database operation fails."""


class NotFoundError(StoreError):
    """Raised when a requested record does not exist."""


class UniqueViolationError(StoreError):
    """Raised when a write would break a uniqueness constraint."""


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return value


def _from_db(row: sqlite3.Row) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for key in row.keys():
        value = row[key]
        if key.endswith("_at") and isinstance(value, str):
            value = datetime.fromisoformat(value)
        record[key] = value
    return record


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.IntegrityError as exc:
        message = str(exc)
        if message.startswith("UNIQUE constraint failed"):
            raise UniqueViolationError(message) from exc
        raise StoreError(message) from exc
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc


class Database:
    """A thread-safe SQLite connection holding the runtime schema.

    Timestamps are stored as UTC ISO strings; columns whose names end
    in ``_at`` come back as timezone-aware datetimes.
    """

    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self._lock = threading.RLock()
        with _translate_errors():
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False, isolation_level=None
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(SCHEMA)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a statement and return the number of rows it affected."""
        with self._lock, _translate_errors():
            cursor = self._conn.execute(sql, [_to_db(p) for p in params])
            return cursor.rowcount

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a statement and return every row it produced."""
        with self._lock, _translate_errors():
            cursor = self._conn.execute(sql, [_to_db(p) for p in params])
            return [_from_db(row) for row in cursor.fetchall()]

    def query_one(
        self, sql: str, params: Sequence[Any] = ()
    ) -> Optional[dict[str, Any]]:
        """Run a statement and return its first row, or None."""
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def estimate_count(self, table: str) -> int:
        """Return the number of rows in one of the schema's tables."""
        if table not in TABLES:
            raise StoreError(f"unknown table: {table}")
        row = self.query_one(f"SELECT COUNT(*) AS n FROM {table}")
        return int(row["n"]) if row else 0

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()