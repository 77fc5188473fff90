"""A persistent key-value store holding JSON values."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional, Union

from llmruntime.db import Database, StoreError
from llmruntime.types import KV, _Table, _utcnow

_KV: _Table[KV] = _Table("kv", KV, "key", tiebreak="key")

RawJSON = Union[str, bytes, bytearray]


def _raw(value: RawJSON) -> str:
    text = value.decode("utf-8") if isinstance(value, (bytes, bytearray)) else value
    try:
        json.loads(text)
    except ValueError as exc:
        raise StoreError(f"value is not valid JSON: {exc}") from exc
    return text


class KVStore:
    """Store raw JSON values under string keys."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def set_kv(self, key: str, value: RawJSON) -> None:
        """Insert or replace the JSON value stored under ``key``."""
        now = _utcnow()
        self._db.execute(
            "INSERT INTO kv (key, value, created_at, updated_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT (key) DO UPDATE SET value = excluded.value, "
            "updated_at = excluded.updated_at",
            [key, _raw(value), now, now],
        )

    def update_kv(self, key: str, value: RawJSON) -> None:
        """Replace the JSON value of an existing key."""
        _KV.update(self._db, KV(key=key, value=_raw(value)), "value", key="key")

    def get_kv(self, key: str) -> Any:
        """Return the decoded JSON value stored under ``key``."""
        return json.loads(_KV.get(self._db, "key", key).value)

    def delete_kv(self, key: str) -> None:
        """Delete ``key`` and its value."""
        _KV.delete(self._db, "key", key)

    def list_kv(self, created_at_cursor: Optional[datetime], limit: int) -> list[KV]:
        """Return up to ``limit`` entries created before the cursor, newest first."""
        return _KV.page(self._db, created_at_cursor, limit)

    def list_kv_prefix(
        self, prefix: str, created_at_cursor: Optional[datetime], limit: int
    ) -> list[KV]:
        """Like :meth:`list_kv`, restricted to keys starting with ``prefix``."""
        return _KV.page(
            self._db,
            created_at_cursor,
            limit,
            where="substr(key, 1, ?) = ?",
            params=[len(prefix), prefix],
        )

    def estimate_kv_count(self) -> int:
        """Return the number of stored keys."""
        return _KV.count(self._db)