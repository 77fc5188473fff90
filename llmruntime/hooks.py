"""Persistence of remote hooks."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from llmruntime.db import Database
from llmruntime.types import RemoteHook, _stamp, _Table

_HOOKS: _Table[RemoteHook] = _Table("remote_hooks", RemoteHook, "remote hook")


class HookStore:
    """Create, read, update, delete and list remote hooks."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create_remote_hook(self, hook: RemoteHook) -> None:
        """Insert a hook, giving it an id if it has none and stamping its times."""
        _stamp(hook)
        if not hook.id:
            hook.id = str(uuid.uuid4())
        _HOOKS.insert(self._db, hook)

    def get_remote_hook(self, id: str) -> RemoteHook:
        """Return the hook with the given id."""
        return _HOOKS.get(self._db, "id", id)

    def get_remote_hook_by_name(self, name: str) -> RemoteHook:
        """Return the hook with the given name."""
        return _HOOKS.get(self._db, "name", name)

    def update_remote_hook(self, hook: RemoteHook) -> None:
        """Save a hook's name, endpoint, method and timeout."""
        _HOOKS.update(self._db, hook, "name", "endpoint_url", "method", "timeout_ms")

    def delete_remote_hook(self, id: str) -> None:
        """Delete the hook with the given id."""
        _HOOKS.delete(self._db, "id", id)

    def list_remote_hooks(
        self, created_at_cursor: Optional[datetime], limit: int
    ) -> list[RemoteHook]:
        """Return up to ``limit`` hooks created before the cursor, newest first."""
        return _HOOKS.page(self._db, created_at_cursor, limit)

    def estimate_remote_hook_count(self) -> int:
        """Return the number of stored hooks."""
        return _HOOKS.count(self._db)