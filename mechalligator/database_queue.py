"""A job queue kept in the database."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from .database import DatabaseError
from .job_repository import JobRepository
from .jobtypes import Job, Priority, Status

_DEFAULT_MAX_ATTEMPTS = 3


class QueueError(Exception):
    """Raised when a job cannot be queued or taken from the queue."""


class DatabaseQueue:
    """Queues jobs as rows and hands out the next due one."""

    def __init__(self, repo: JobRepository) -> None:
        self._repo = repo
        self._take_lock = threading.Lock()

    def enqueue(self, job: Job) -> None:
        """Fill in defaults for unset fields and store the job."""
        if not job.id:
            raise QueueError("job ID is required")

        now = datetime.now(timezone.utc)
        if job.status is None:
            job.status = Status.PENDING
        if not job.priority:
            job.priority = Priority.NORMAL
        if not job.max_attempts:
            job.max_attempts = _DEFAULT_MAX_ATTEMPTS
        if job.scheduled_at is None:
            job.scheduled_at = now
        if job.created_at is None:
            job.created_at = now
        job.updated_at = now

        self._repo.create(job)

    def dequeue(self) -> Job | None:
        """Take the next due job, mark it running and return it; None if none."""
        with self._take_lock:
            job = self._repo.get_next_pending()
            if job is None:
                return None

            job.status = Status.RUNNING
            job.started_at = datetime.now(timezone.utc)
            job.attempts += 1
            try:
                self._repo.update(job)
            except (DatabaseError, ValueError) as err:
                raise QueueError(f"failed to mark job as running: {err}") from err
            return job

    def update_job(self, job: Job) -> None:
        self._repo.update(job)

    def get_job(self, job_id: str) -> Job | None:
        return self._repo.get_by_id(job_id)

    def list_jobs(self, status: Status, limit: int) -> list[Job]:
        return self._repo.list_by_status(status, limit)

    def delete_job(self, job_id: str) -> None:
        self._repo.delete(job_id)