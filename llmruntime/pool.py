"""Persistence of LLM pools and their backend and model assignments."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from llmruntime.db import Database, NotFoundError
from llmruntime.types import Backend, Model, Pool

_SELECT = "SELECT id, name, purpose_type, created_at, updated_at FROM llm_pool"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PoolStore:
    """Manage pools and which backends and models belong to them."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create_pool(self, pool: Pool) -> None:
        """Insert a pool, stamping its creation and update times."""
        now = _utcnow()
        pool.created_at = now
        pool.updated_at = now
        self._db.execute(
            "INSERT INTO llm_pool (id, name, purpose_type, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            [pool.id, pool.name, pool.purpose_type, pool.created_at, pool.updated_at],
        )

    def get_pool(self, id: str) -> Pool:
        """Return the pool with the given id."""
        row = self._db.query_one(f"{_SELECT} WHERE id = ?", [id])
        if row is None:
            raise NotFoundError(f"pool {id!r} not found")
        return Pool(**row)

    def get_pool_by_name(self, name: str) -> Pool:
        """Return the pool with the given name."""
        row = self._db.query_one(f"{_SELECT} WHERE name = ?", [name])
        if row is None:
            raise NotFoundError(f"pool named {name!r} not found")
        return Pool(**row)

    def update_pool(self, pool: Pool) -> None:
        """Save a pool's name and purpose."""
        pool.updated_at = _utcnow()
        affected = self._db.execute(
            "UPDATE llm_pool SET name = ?, purpose_type = ?, updated_at = ? WHERE id = ?",
            [pool.name, pool.purpose_type, pool.updated_at, pool.id],
        )
        if affected == 0:
            raise NotFoundError(f"pool {pool.id!r} not found")

    def delete_pool(self, id: str) -> None:
        """Delete the pool with the given id."""
        if self._db.execute("DELETE FROM llm_pool WHERE id = ?", [id]) == 0:
            raise NotFoundError(f"pool {id!r} not found")

    def list_all_pools(self) -> list[Pool]:
        """Return every pool, newest first."""
        rows = self._db.query(f"{_SELECT} ORDER BY created_at DESC, id DESC")
        return [Pool(**row) for row in rows]

    def list_pools(self, created_at_cursor: Optional[datetime], limit: int) -> list[Pool]:
        """Return up to ``limit`` pools created before the cursor, newest first."""
        cursor = created_at_cursor if created_at_cursor is not None else _utcnow()
        rows = self._db.query(
            f"{_SELECT} WHERE created_at < ? ORDER BY created_at DESC, id DESC LIMIT ?",
            [cursor, limit],
        )
        return [Pool(**row) for row in rows]

    def list_pools_by_purpose(
        self, purpose_type: str, created_at_cursor: Optional[datetime], limit: int
    ) -> list[Pool]:
        """Like :meth:`list_pools`, restricted to one purpose type."""
        cursor = created_at_cursor if created_at_cursor is not None else _utcnow()
        rows = self._db.query(
            f"{_SELECT} WHERE purpose_type = ? AND created_at < ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            [purpose_type, cursor, limit],
        )
        return [Pool(**row) for row in rows]

    def assign_backend_to_pool(self, pool_id: str, backend_id: str) -> None:
        """Make a backend a member of a pool."""
        self._db.execute(
            "INSERT INTO llm_pool_backend_assignments (pool_id, backend_id, assigned_at) "
            "VALUES (?, ?, ?)",
            [pool_id, backend_id, _utcnow()],
        )

    def remove_backend_from_pool(self, pool_id: str, backend_id: str) -> None:
        """Remove a backend from a pool."""
        affected = self._db.execute(
            "DELETE FROM llm_pool_backend_assignments WHERE pool_id = ? AND backend_id = ?",
            [pool_id, backend_id],
        )
        if affected == 0:
            raise NotFoundError(f"backend {backend_id!r} is not in pool {pool_id!r}")

    def list_backends_for_pool(self, pool_id: str) -> list[Backend]:
        """Return the backends of a pool, most recently assigned first."""
        rows = self._db.query(
            "SELECT b.id, b.name, b.base_url, b.type, b.created_at, b.updated_at "
            "FROM llm_backends b "
            "INNER JOIN llm_pool_backend_assignments a ON b.id = a.backend_id "
            "WHERE a.pool_id = ? ORDER BY a.assigned_at DESC",
            [pool_id],
        )
        return [Backend(**row) for row in rows]

    def list_pools_for_backend(self, backend_id: str) -> list[Pool]:
        """Return the pools a backend belongs to, most recently assigned first."""
        rows = self._db.query(
            "SELECT p.id, p.name, p.purpose_type, p.created_at, p.updated_at "
            "FROM llm_pool p "
            "INNER JOIN llm_pool_backend_assignments a ON p.id = a.pool_id "
            "WHERE a.backend_id = ? ORDER BY a.assigned_at DESC",
            [backend_id],
        )
        return [Pool(**row) for row in rows]

    def assign_model_to_pool(self, pool_id: str, model_id: str) -> None:
        """Make a model available in a pool."""
        now = _utcnow()
        self._db.execute(
            "INSERT INTO ollama_model_assignments "
            "(model_id, llm_pool_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
            [model_id, pool_id, now, now],
        )

    def remove_model_from_pool(self, pool_id: str, model_id: str) -> None:
        """Remove a model from a pool."""
        affected = self._db.execute(
            "DELETE FROM ollama_model_assignments WHERE model_id = ? AND llm_pool_id = ?",
            [model_id, pool_id],
        )
        if affected == 0:
            raise NotFoundError(f"model {model_id!r} is not in pool {pool_id!r}")

    def list_models_for_pool(self, pool_id: str) -> list[Model]:
        """Return the models of a pool, most recently assigned first."""
        rows = self._db.query(
            "SELECT m.id, m.model, m.created_at, m.updated_at "
            "FROM ollama_models m "
            "INNER JOIN ollama_model_assignments a ON m.id = a.model_id "
            "WHERE a.llm_pool_id = ? ORDER BY a.created_at DESC",
            [pool_id],
        )
        return [Model(**row) for row in rows]

    def list_pools_for_model(self, model_id: str) -> list[Pool]:
        """Return the pools a model belongs to, most recently assigned first."""
        rows = self._db.query(
            "SELECT p.id, p.name, p.purpose_type, p.created_at, p.updated_at "
            "FROM llm_pool p "
            "INNER JOIN ollama_model_assignments a ON p.id = a.llm_pool_id "
            "WHERE a.model_id = ? ORDER BY a.created_at DESC",
            [model_id],
        )
        return [Pool(**row) for row in rows]

    def estimate_pool_count(self) -> int:
        """Return the number of stored pools."""
        return self._db.estimate_count("llm_pool")