"""Creating, listing and cancelling scrape jobs for configured sites."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .database import Database, DatabaseError
from .database_queue import QueueError
from .jobtypes import Job, JobQueue, JobType, Priority, ScrapeJobPayload, Status

_CONFIG_WITH_VENDOR = """
    SELECT sc.id, sc.vendor_id, sc.name, sc.endpoint, sc.type, sc.category, sc.active,
           v.id, v.name, v.country
    FROM site_configurations sc
    JOIN vendors v ON sc.vendor_id = v.id
    WHERE sc.id = $1
"""

_ACTIVE_CONFIGS = """
    SELECT id, vendor_id, name, endpoint, type, category, active
    FROM site_configurations
    WHERE active = 1
    ORDER BY name
"""

_QUEUE_ERRORS = (QueueError, DatabaseError, ValueError)


class JobServiceError(Exception):
    """Raised when a job cannot be created, found or cancelled."""


@dataclass
class SiteConfiguration:
    """A site that products are scraped from."""

    id: str
    vendor_id: str
    name: str
    endpoint: str
    type: str
    category: str
    active: bool


@dataclass
class Vendor:
    """The shop behind one or more site configurations."""

    id: str
    name: str
    country: str


def _config_from_row(row: tuple[Any, ...]) -> SiteConfiguration:
    config_id, vendor_id, name, endpoint, site_type, category, active = row
    return SiteConfiguration(
        id=config_id,
        vendor_id=vendor_id,
        name=name,
        endpoint=endpoint,
        type=site_type,
        category=category,
        active=bool(active),
    )


class JobService:
    """Turns site configurations into queued scrape jobs."""

    def __init__(self, db: Database, queue: JobQueue, scheduler: Any = None) -> None:
        self._db = db
        self._queue = queue
        self._scheduler = scheduler

    def create_scrape_job(
        self, config_id: str, options: dict[str, str] | None
    ) -> Job:
        """Queue a job that scrapes every page of one active site."""
        try:
            config, vendor = self._site_config_with_vendor(config_id)
        except (DatabaseError, LookupError) as err:
            raise JobServiceError(f"failed to get site configuration: {err}") from err

        if not config.active:
            raise JobServiceError(f"site configuration {config_id} is not active")

        payload = ScrapeJobPayload(
            config_id=config.id,
            vendor_id=config.vendor_id,
            vendor_name=vendor.name,
            site_url=config.endpoint,
            site_type=config.type,
            category=config.category,
            options=dict(options or {}),
            all_pages=True,
        )
        now = datetime.now(timezone.utc)
        job = Job(
            id=f"scrape_{config_id}_{int(now.timestamp())}",
            type=JobType.SCRAPE_PRODUCTS,
            priority=Priority.NORMAL,
            status=Status.PENDING,
            payload={
                "config_id": payload.config_id,
                "vendor_id": payload.vendor_id,
                "vendor_name": payload.vendor_name,
                "site_url": payload.site_url,
                "site_type": payload.site_type,
                "category": payload.category,
                "options": None if options is None else dict(options),
                "all_pages": payload.all_pages,
            },
            max_attempts=3,
            scheduled_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            self._queue.enqueue(job)
        except _QUEUE_ERRORS as err:
            raise JobServiceError(f"failed to enqueue job: {err}") from err
        return job

    def create_scrape_all_sites_job(self) -> Job:
        """Queue a scrape job per active site and record a completed parent job."""
        try:
            configs = self._active_site_configurations()
        except DatabaseError as err:
            raise JobServiceError(f"failed to get active configurations: {err}") from err

        if not configs:
            raise JobServiceError("no active site configurations found")

        job_ids = []
        for config in configs:
            try:
                child = self.create_scrape_job(config.id, None)
            except JobServiceError as err:
                raise JobServiceError(
                    f"failed to create scrape job for config {config.id}: {err}"
                ) from err
            job_ids.append(child.id)

        now = datetime.now(timezone.utc)
        job = Job(
            id=f"scrape_all_{int(now.timestamp())}",
            type=JobType.SCRAPE_ALL_SITES,
            priority=Priority.NORMAL,
            status=Status.COMPLETED,
            payload={"job_ids": job_ids, "total_jobs": len(job_ids)},
            result={"jobs_created": len(job_ids)},
            max_attempts=1,
            scheduled_at=now,
            started_at=now,
            completed_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            self._queue.enqueue(job)
        except _QUEUE_ERRORS as err:
            raise JobServiceError(f"failed to enqueue parent job: {err}") from err
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._queue.get_job(job_id)

    def list_jobs(self, status: Status, limit: int) -> list[Job]:
        return self._queue.list_jobs(status, limit)

    def cancel_job(self, job_id: str) -> None:
        """Cancel a pending job; running and finished jobs cannot be cancelled."""
        try:
            job = self._queue.get_job(job_id)
        except _QUEUE_ERRORS as err:
            raise JobServiceError(f"failed to get job: {err}") from err

        if job is None:
            raise JobServiceError("job not found")
        if job.status is Status.RUNNING:
            raise JobServiceError("cannot cancel running job")
        if job.status is not Status.PENDING:
            raise JobServiceError("job is not in pending status")

        job.status = Status.CANCELLED
        job.completed_at = datetime.now(timezone.utc)
        self._queue.update_job(job)

    def _site_config_with_vendor(
        self, config_id: str
    ) -> tuple[SiteConfiguration, Vendor]:
        row = self._db.query_row(_CONFIG_WITH_VENDOR, config_id)
        if row is None:
            raise LookupError(f"site configuration {config_id} not found")
        config = _config_from_row(row[:7])
        vendor_id, vendor_name, country = row[7:]
        return config, Vendor(id=vendor_id, name=vendor_name, country=country)

    def _active_site_configurations(self) -> list[SiteConfiguration]:
        return [_config_from_row(row) for row in self._db.query(_ACTIVE_CONFIGS)]