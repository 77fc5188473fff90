"""A persistent queue of jobs keyed by task type."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from llmruntime.db import Database, NotFoundError
from llmruntime.types import Job, _Table, _utcnow


def _job(row: dict[str, Any]) -> Job:
    payload = row.pop("payload")
    return Job(payload=bytes(payload) if payload is not None else b"", **row)


_JOBS: _Table[Job] = _Table("job_queue_v2", Job, "job", tiebreak=None, factory=_job)
_RETURNING = f"RETURNING {', '.join(_JOBS.columns)}"


def _oldest_first(jobs: list[Job]) -> list[Job]:
    return sorted(jobs, key=lambda job: (job.created_at, job.id))


class JobQueueStore:
    """Append, pop and list queued jobs."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def append_job(self, job: Job) -> None:
        """Queue a single job; the given object is left unchanged."""
        _JOBS.insert(self._db, replace(job, created_at=_utcnow()))

    def append_jobs(self, *args: Job) -> None:
        """Queue several jobs in one statement, stamping each with the same time."""
        now = _utcnow()
        for job in args:
            job.created_at = now
        _JOBS.insert(self._db, *args)

    def _pop(self, where: str = "", params: list[Any] | None = None) -> list[Job]:
        condition = f" WHERE {where}" if where else ""
        rows = self._db.query(f"DELETE FROM job_queue_v2{condition} {_RETURNING}", params or [])
        return _oldest_first(_JOBS.rows(rows))

    def pop_all_jobs(self) -> list[Job]:
        """Remove and return every queued job."""
        return self._pop()

    def pop_jobs_for_type(self, task_type: str) -> list[Job]:
        """Remove and return every job of the given task type."""
        return self._pop("task_type = ?", [task_type])

    def pop_job_for_type(self, task_type: str) -> Job:
        """Remove and return the oldest job of the given task type."""
        jobs = self._pop(
            "id = (SELECT id FROM job_queue_v2 WHERE task_type = ? "
            "ORDER BY created_at LIMIT 1)",
            [task_type],
        )
        if not jobs:
            raise NotFoundError(f"no job of type {task_type!r} queued")
        return jobs[0]

    def pop_n_jobs_for_type(self, task_type: str, n: int) -> list[Job]:
        """Remove and return up to ``n`` of the oldest jobs of the given type."""
        return self._pop(
            "id IN (SELECT id FROM job_queue_v2 WHERE task_type = ? "
            "ORDER BY created_at, id LIMIT ?)",
            [task_type, n],
        )

    def get_jobs_for_type(self, task_type: str) -> list[Job]:
        """Return the jobs of the given type, oldest first, without removing them."""
        rows = self._db.query(
            f"{_JOBS.select} WHERE task_type = ? ORDER BY created_at", [task_type]
        )
        return _JOBS.rows(rows)

    def list_jobs(
        self, created_at_cursor: Optional[datetime], limit: int
    ) -> list[Job]:
        """Return up to ``limit`` jobs created before the cursor, newest first."""
        return _JOBS.page(self._db, created_at_cursor, limit)

    def estimate_job_count(self) -> int:
        """Return the number of queued jobs."""
        return _JOBS.count(self._db)