"""Worker threads that take jobs from a queue and run their handlers."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone

from .database_queue import QueueError
from .jobtypes import Job, JobHandler, JobQueue, JobType, Status

log = logging.getLogger(__name__)

_CLEANUP_AGE = timedelta(days=7)


class JobScheduler:
    """Polls the queue from several worker threads and dispatches jobs by type."""

    def __init__(
        self,
        queue: JobQueue,
        workers: int,
        poll_interval: float = 5.0,
        cleanup_interval: float = 3600.0,
    ) -> None:
        self._queue = queue
        self._workers = workers
        self._poll_interval = poll_interval
        self._cleanup_interval = cleanup_interval
        self._handlers: dict[JobType, JobHandler] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def __enter__(self) -> JobScheduler:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def register_handler(self, handler: JobHandler) -> None:
        """Use handler for jobs of its type, replacing any earlier one."""
        with self._lock:
            self._handlers[handler.job_type] = handler

    def start(self) -> None:
        """Start the worker threads and the cleanup thread."""
        log.info("Starting job scheduler with %d workers", self._workers)
        self._stop.clear()
        for worker_id in range(self._workers):
            self._spawn(self._worker, f"job-worker-{worker_id}", worker_id)
        self._spawn(self._cleanup_worker, "job-cleanup")

    def stop(self) -> None:
        """Signal every thread to finish and wait for them."""
        log.info("Stopping job scheduler...")
        self._stop.set()
        for thread in self._threads:
            thread.join()
        self._threads.clear()
        log.info("Job scheduler stopped")

    def add_job(self, job: Job) -> None:
        self._queue.enqueue(job)

    def remove_job(self, job_id: str) -> None:
        self._queue.delete_job(job_id)

    def process_next_job(self, worker_id: int) -> Job | None:
        """Take one job and run it; return the job, or None if nothing was due."""
        try:
            job = self._queue.dequeue()
        except Exception as err:
            log.error("Worker %d: Failed to dequeue job: %s", worker_id, err)
            return None
        if job is None:
            return None

        log.info(
            "Worker %d: Processing job %s (type: %s)", worker_id, job.id, job.type.value
        )

        with self._lock:
            handler = self._handlers.get(job.type)
        if handler is None:
            log.warning(
                "Worker %d: No handler found for job type %s", worker_id, job.type.value
            )
            self.mark_job_failed(
                job, QueueError(f"no handler found for job type {job.type.value}")
            )
            return job

        try:
            handler.handle(job)
        except Exception as err:
            log.error("Worker %d: Job %s failed: %s", worker_id, job.id, err)
            self.mark_job_failed(job, err)
            return job

        job.status = Status.COMPLETED
        job.completed_at = datetime.now(timezone.utc)
        try:
            self._queue.update_job(job)
        except Exception as err:
            log.error(
                "Worker %d: Failed to update completed job %s: %s", worker_id, job.id, err
            )
        else:
            log.info("Worker %d: Job %s completed successfully", worker_id, job.id)
        return job

    def mark_job_failed(self, job: Job, error: BaseException) -> None:
        """Record the error and either reschedule the job or fail it for good.

        A job with attempts left is retried after attempts² minutes.
        """
        job.error = str(error)
        now = datetime.now(timezone.utc)
        if job.attempts < job.max_attempts:
            backoff = timedelta(minutes=job.attempts * job.attempts)
            job.scheduled_at = now + backoff
            job.status = Status.PENDING
            job.started_at = None
            log.info(
                "Job %s will be retried in %s (attempt %d/%d)",
                job.id,
                backoff,
                job.attempts,
                job.max_attempts,
            )
        else:
            job.status = Status.FAILED
            job.completed_at = now
            log.info(
                "Job %s failed permanently after %d attempts", job.id, job.attempts
            )

        try:
            self._queue.update_job(job)
        except Exception as err:
            log.error("Failed to update failed job %s: %s", job.id, err)

    def cleanup_old_jobs(self) -> datetime:
        """Log the cut-off for old finished jobs and return it."""
        cutoff = datetime.now(timezone.utc) - _CLEANUP_AGE
        log.info("Cleaning up jobs older than %s", cutoff.strftime("%Y-%m-%d"))
        return cutoff

    def _spawn(self, target, name: str, *args: object) -> None:
        thread = threading.Thread(target=target, name=name, args=args, daemon=True)
        thread.start()
        self._threads.append(thread)

    def _worker(self, worker_id: int) -> None:
        log.info("Worker %d started", worker_id)
        try:
            while not self._stop.wait(self._poll_interval):
                self.process_next_job(worker_id)
        finally:
            log.info("Worker %d stopped", worker_id)

    def _cleanup_worker(self) -> None:
        while not self._stop.wait(self._cleanup_interval):
            self.cleanup_old_jobs()