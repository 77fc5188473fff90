"""Persistence of models known to the runtime."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from llmruntime.db import Database
from llmruntime.types import Model, _stamp, _Table

_MODELS: _Table[Model] = _Table("ollama_models", Model, "model")


class ModelStore:
    """Create, read, delete and list models."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def append_model(self, model: Model) -> None:
        """Insert a model, stamping its creation and update times."""
        _stamp(model)
        _MODELS.insert(self._db, model)

    def get_model(self, id: str) -> Model:
        """Return the model with the given id."""
        return _MODELS.get(self._db, "id", id)

    def get_model_by_name(self, name: str) -> Model:
        """Return the model with the given name."""
        return _MODELS.get(self._db, "model", name)

    def delete_model(self, model_name: str) -> None:
        """Delete the model with the given name."""
        _MODELS.delete(self._db, "model", model_name)

    def list_all_models(self) -> list[Model]:
        """Return every model, newest first."""
        return _MODELS.list_all(self._db)

    def list_models(
        self, created_at_cursor: Optional[datetime], limit: int
    ) -> list[Model]:
        """Return up to ``limit`` models created before the cursor, newest first."""
        return _MODELS.page(self._db, created_at_cursor, limit)

    def estimate_model_count(self) -> int:
        """Return the number of stored models."""
        return _MODELS.count(self._db)