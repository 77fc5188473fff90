"""Record types persisted and exchanged by the runtime, and the table mapping the stores share."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, TypeVar

from llmruntime.db import NotFoundError

R = TypeVar("R")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(kw_only=True)
class _Created:
    created_at: Optional[datetime] = None


@dataclass(kw_only=True)
class _Stamped(_Created):
    updated_at: Optional[datetime] = None


def _stamp(record: _Created) -> None:
    """Set a record's creation time, and its update time if it has one, to now."""
    now = _utcnow()
    record.created_at = now
    if isinstance(record, _Stamped):
        record.updated_at = now


@dataclass
class Status:
    """Progress report for a model download on a backend."""

    status: str = ""
    digest: str = ""
    total: int = 0
    completed: int = 0
    model: str = ""
    base_url: str = ""


@dataclass
class QueueItem:
    """A model queued for download from a backend URL."""

    url: str = ""
    model: str = ""


@dataclass
class Backend(_Stamped):
    """An LLM backend the runtime can talk to."""

    id: str = ""
    name: str = ""
    base_url: str = ""
    type: str = ""


@dataclass
class Model(_Stamped):
    """A model known to the runtime."""

    id: str = ""
    model: str = ""


@dataclass
class Pool(_Stamped):
    """A named group of backends and models serving one purpose."""

    id: str = ""
    name: str = ""
    purpose_type: str = ""


@dataclass
class Job(_Created):
    """A queued unit of work."""

    id: str = ""
    task_type: str = ""
    payload: bytes = b""
    scheduled_for: int = 0
    valid_until: int = 0
    retry_count: int = 0


@dataclass
class KV(_Stamped):
    """A key with a raw JSON value."""

    key: str = ""
    value: str = ""


@dataclass
class RemoteHook(_Stamped):
    """An HTTP endpoint that tasks can call out to."""

    id: str = ""
    name: str = ""
    endpoint_url: str = ""
    method: str = ""
    timeout_ms: int = 0


@dataclass(frozen=True)
class _Table(Generic[R]):
    """Maps a record type onto a table whose columns are named like its fields."""

    name: str
    record_type: type
    label: str
    tiebreak: Optional[str] = "id"
    factory: Optional[Callable[[dict[str, Any]], R]] = field(default=None)

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(f.name for f in fields(self.record_type))

    @property
    def select(self) -> str:
        return f"SELECT {', '.join(self.columns)} FROM {self.name}"

    @property
    def newest_first(self) -> str:
        order = "created_at DESC"
        return f"{order}, {self.tiebreak} DESC" if self.tiebreak else order

    def make(self, row: dict[str, Any]) -> R:
        return self.factory(row) if self.factory else self.record_type(**row)

    def rows(self, rows: Iterable[dict[str, Any]]) -> list[R]:
        return [self.make(row) for row in rows]

    def insert(self, db: Any, *records: Any) -> None:
        """Insert the records in one statement."""
        if not records:
            return
        columns = self.columns
        row = "(" + ", ".join(["?"] * len(columns)) + ")"
        params = [getattr(record, column) for record in records for column in columns]
        db.execute(
            f"INSERT INTO {self.name} ({', '.join(columns)}) "
            f"VALUES {','.join([row] * len(records))}",
            params,
        )

    def get(self, db: Any, column: str, value: Any) -> R:
        """Return the record whose ``column`` equals ``value``."""
        row = db.query_one(f"{self.select} WHERE {column} = ?", [value])
        if row is None:
            raise NotFoundError(f"{self.label} with {column} {value!r} not found")
        return self.make(row)

    def update(self, db: Any, record: Any, *columns: str, key: str = "id") -> None:
        """Save the given columns of a record, stamping its update time."""
        record.updated_at = _utcnow()
        assigned = (*columns, "updated_at")
        affected = db.execute(
            f"UPDATE {self.name} SET {', '.join(f'{c} = ?' for c in assigned)} "
            f"WHERE {key} = ?",
            [*(getattr(record, c) for c in assigned), getattr(record, key)],
        )
        if affected == 0:
            raise NotFoundError(f"{self.label} {getattr(record, key)!r} not found")

    def delete(self, db: Any, column: str, value: Any) -> None:
        """Delete the record whose ``column`` equals ``value``."""
        if db.execute(f"DELETE FROM {self.name} WHERE {column} = ?", [value]) == 0:
            raise NotFoundError(f"{self.label} with {column} {value!r} not found")

    def list_all(self, db: Any) -> list[R]:
        """Return every record, newest first."""
        return self.rows(db.query(f"{self.select} ORDER BY {self.newest_first}", []))

    def page(
        self,
        db: Any,
        cursor: Optional[datetime],
        limit: int,
        where: str = "",
        params: Sequence[Any] = (),
    ) -> list[R]:
        """Return up to ``limit`` records created before the cursor, newest first."""
        condition = f"{where} AND created_at < ?" if where else "created_at < ?"
        rows = db.query(
            f"{self.select} WHERE {condition} ORDER BY {self.newest_first} LIMIT ?",
            [*params, cursor if cursor is not None else _utcnow(), limit],
        )
        return self.rows(rows)

    def count(self, db: Any) -> int:
        return db.estimate_count(self.name)