"""Persistence of LLM backends."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from llmruntime.db import Database
from llmruntime.types import Backend, _stamp, _Table

_BACKENDS: _Table[Backend] = _Table("llm_backends", Backend, "backend")


class BackendStore:
    """Create, read, update, delete and list backends."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create_backend(self, backend: Backend) -> None:
        """Insert a backend, stamping its creation and update times."""
        _stamp(backend)
        _BACKENDS.insert(self._db, backend)

    def get_backend(self, id: str) -> Backend:
        """Return the backend with the given id."""
        return _BACKENDS.get(self._db, "id", id)

    def update_backend(self, backend: Backend) -> None:
        """Save a backend's name, URL and type."""
        _BACKENDS.update(self._db, backend, "name", "base_url", "type")

    def delete_backend(self, id: str) -> None:
        """Delete the backend with the given id."""
        _BACKENDS.delete(self._db, "id", id)

    def list_all_backends(self) -> list[Backend]:
        """Return every backend, newest first."""
        return _BACKENDS.list_all(self._db)

    def list_backends(
        self, created_at_cursor: Optional[datetime], limit: int
    ) -> list[Backend]:
        """Return up to ``limit`` backends created before the cursor, newest first."""
        return _BACKENDS.page(self._db, created_at_cursor, limit)

    def get_backend_by_name(self, name: str) -> Backend:
        """Return the backend with the given name."""
        return _BACKENDS.get(self._db, "name", name)

    def estimate_backend_count(self) -> int:
        """Return the number of stored backends."""
        return _BACKENDS.count(self._db)