"""Storage of jobs in the ``jobs`` table."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from .database import Database, DatabaseError
from .jobtypes import Job, JobType, Priority, Status

_COLUMNS = (
    "id, type, priority, status, payload, result, error, "
    "attempts, max_attempts, scheduled_at, started_at, "
    "completed_at, created_at, updated_at"
)


def _marshal(value: Any, what: str) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as err:
        raise ValueError(f"failed to marshal {what}: {err}") from err


def _unmarshal(text: str | None, what: str) -> Any:
    if text is None:
        return None
    try:
        return json.loads(text)
    except ValueError as err:
        raise DatabaseError(f"failed to unmarshal {what}: {err}") from err


def _time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _priority(value: int) -> int:
    try:
        return Priority(value)
    except ValueError:
        return value


def _scan(row: tuple[Any, ...]) -> Job:
    (
        job_id,
        job_type,
        priority,
        status,
        payload,
        result,
        error,
        attempts,
        max_attempts,
        scheduled_at,
        started_at,
        completed_at,
        created_at,
        updated_at,
    ) = row
    try:
        kind = JobType(job_type)
        state = None if status is None else Status(status)
    except ValueError as err:
        raise DatabaseError(f"invalid job row {job_id}: {err}") from err

    return Job(
        id=job_id,
        type=kind,
        priority=_priority(priority or 0),
        status=state,
        payload=_unmarshal(payload, "payload") or {},
        result=_unmarshal(result, "result"),
        error=error or "",
        attempts=attempts or 0,
        max_attempts=max_attempts or 0,
        scheduled_at=_time(scheduled_at),
        started_at=_time(started_at),
        completed_at=_time(completed_at),
        created_at=_time(created_at),
        updated_at=_time(updated_at),
    )


class JobRepository:
    """Creates, reads, updates and deletes job rows."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, job: Job) -> None:
        """Insert a new job row."""
        payload = _marshal(job.payload, "payload")
        result = _marshal(job.result, "result")
        self._db.execute(
            f"INSERT INTO jobs ({_COLUMNS}) VALUES "
            "($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)",
            job.id,
            job.type,
            int(job.priority),
            job.status,
            payload,
            result,
            job.error,
            job.attempts,
            job.max_attempts,
            job.scheduled_at,
            job.started_at,
            job.completed_at,
            job.created_at,
            job.updated_at,
        )

    def update(self, job: Job) -> None:
        """Write every field of the job back and stamp its updated_at."""
        payload = _marshal(job.payload, "payload")
        result = _marshal(job.result, "result")
        job.updated_at = datetime.now(timezone.utc)
        self._db.execute(
            """
            UPDATE jobs
            SET type = $2, priority = $3, status = $4, payload = $5, result = $6,
                error = $7, attempts = $8, max_attempts = $9, scheduled_at = $10,
                started_at = $11, completed_at = $12, updated_at = $13
            WHERE id = $1
            """,
            job.id,
            job.type,
            int(job.priority),
            job.status,
            payload,
            result,
            job.error,
            job.attempts,
            job.max_attempts,
            job.scheduled_at,
            job.started_at,
            job.completed_at,
            job.updated_at,
        )

    def get_by_id(self, job_id: str) -> Job | None:
        """Return the job with this id, or None."""
        row = self._db.query_row(f"SELECT {_COLUMNS} FROM jobs WHERE id = $1", job_id)
        return None if row is None else _scan(row)

    def get_next_pending(self) -> Job | None:
        """Return the due pending job with the highest priority, oldest first."""
        row = self._db.query_row(
            f"""
            SELECT {_COLUMNS}
            FROM jobs
            WHERE status = $1 AND scheduled_at <= $2 AND attempts < max_attempts
            ORDER BY priority DESC, scheduled_at ASC
            LIMIT 1
            """,
            Status.PENDING,
            datetime.now(timezone.utc),
        )
        return None if row is None else _scan(row)

    def list_by_status(self, status: Status, limit: int) -> list[Job]:
        """Return up to limit jobs in this status, newest first."""
        rows = self._db.query(
            f"""
            SELECT {_COLUMNS}
            FROM jobs
            WHERE status = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            status,
            limit,
        )
        return [_scan(row) for row in rows]

    def delete(self, job_id: str) -> None:
        """Remove the job with this id."""
        self._db.execute("DELETE FROM jobs WHERE id = $1", job_id)