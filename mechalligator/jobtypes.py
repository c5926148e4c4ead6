"""Job records, payloads and the interfaces that queues and handlers provide."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Protocol


class Status(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Priority(IntEnum):
    LOW = 1
    NORMAL = 2
    HIGH = 3
    URGENT = 4


class JobType(str, Enum):
    SCRAPE_PRODUCTS = "scrape_products"
    SCRAPE_ALL_SITES = "scrape_all_sites"
    TAG_PRODUCT = "tag_product"


@dataclass
class Job:
    """A unit of background work stored in the job queue.

    Unset fields (None status, zero priority or max_attempts, missing times)
    are filled in with defaults when the job is enqueued.
    """

    id: str
    type: JobType
    priority: int = 0
    status: Status | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    result: dict[str, Any] | None = None
    error: str = ""
    attempts: int = 0
    max_attempts: int = 0
    scheduled_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _string_map(data: Mapping[str, Any], key: str) -> dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError(f"field {key!r} must be a mapping of strings")
    return dict(value)


def _boolean(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean")
    return value


@dataclass
class ScrapeJobPayload:
    """What a scrape job needs to know about the site it scrapes."""

    config_id: str = ""
    vendor_id: str = ""
    vendor_name: str = ""
    site_url: str = ""
    site_type: str = ""
    category: str = ""
    credentials: dict[str, str] = field(default_factory=dict)
    options: dict[str, str] = field(default_factory=dict)
    all_pages: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScrapeJobPayload:
        """Build a payload from a job's payload mapping; raise ValueError on bad types."""
        if not isinstance(data, Mapping):
            raise ValueError("payload must be a mapping")
        return cls(
            config_id=_string(data, "config_id"),
            vendor_id=_string(data, "vendor_id"),
            vendor_name=_string(data, "vendor_name"),
            site_url=_string(data, "site_url"),
            site_type=_string(data, "site_type"),
            category=_string(data, "category"),
            credentials=_string_map(data, "credentials"),
            options=_string_map(data, "options"),
            all_pages=_boolean(data, "all_pages"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping; empty credentials and options are left out."""
        data: dict[str, Any] = {
            "config_id": self.config_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "site_url": self.site_url,
            "site_type": self.site_type,
            "category": self.category,
        }
        if self.credentials:
            data["credentials"] = dict(self.credentials)
        if self.options:
            data["options"] = dict(self.options)
        data["all_pages"] = self.all_pages
        return data


@dataclass
class ScrapeJobResult:
    """Summary stored on a finished scrape job."""

    products_created: int = 0
    products_updated: int = 0
    images_processed: int = 0
    total_errors: int = 0
    errors: list[str] = field(default_factory=list)
    duration: str = ""
    scraped_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping; an empty error list is left out."""
        data: dict[str, Any] = {
            "products_created": self.products_created,
            "products_updated": self.products_updated,
            "images_processed": self.images_processed,
            "total_errors": self.total_errors,
        }
        if self.errors:
            data["errors"] = list(self.errors)
        data["duration"] = self.duration
        data["scraped_at"] = self.scraped_at
        return data


class JobHandler(Protocol):
    """Executes jobs of one type; raises to signal failure."""

    job_type: JobType

    def handle(self, job: Job) -> None: ...


class JobQueue(Protocol):
    """Storage and retrieval of jobs."""

    def enqueue(self, job: Job) -> None: ...

    def dequeue(self) -> Job | None: ...

    def update_job(self, job: Job) -> None: ...

    def get_job(self, job_id: str) -> Job | None: ...

    def list_jobs(self, status: Status, limit: int) -> list[Job]: ...

    def delete_job(self, job_id: str) -> None: ...