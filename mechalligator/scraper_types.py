"""Products, scrape requests and results, and the plugin interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

_ZERO_TIME = "0001-01-01T00:00:00Z"


class ScraperError(Exception):
    """Raised when a scrape cannot be carried out."""


@dataclass
class Product:
    """One product (or product variant) found on a site."""

    id: str = ""
    name: str = ""
    description: str = ""
    price: float = 0.0
    currency: str = ""
    url: str = ""
    in_stock: bool = False
    images: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping; empty metadata is left out."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
            "url": self.url,
            "in_stock": self.in_stock,
            "images": list(self.images),
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass
class ScrapeRequest:
    """What to scrape and how."""

    config_id: str = ""
    vendor_id: str = ""
    vendor_name: str = ""
    site_url: str = ""
    site_type: str = ""
    category: str = ""
    credentials: dict[str, str] = field(default_factory=dict)
    options: dict[str, str] = field(default_factory=dict)


@dataclass
class ScrapeMetadata:
    """Bookkeeping filled in after a scrape."""

    scraped_at: datetime | None = None
    total_found: int = 0
    total_errors: int = 0
    duration: str = ""
    plugin_name: str = ""
    plugin_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        if self.scraped_at is None:
            scraped_at = _ZERO_TIME
        else:
            when = self.scraped_at
            if when.tzinfo is not None and when.utcoffset() == timezone.utc.utcoffset(
                None
            ):
                scraped_at = when.replace(tzinfo=None).isoformat() + "Z"
            else:
                scraped_at = when.isoformat()
        return {
            "scraped_at": scraped_at,
            "total_found": self.total_found,
            "total_errors": self.total_errors,
            "duration": self.duration,
            "plugin_name": self.plugin_name,
            "plugin_version": self.plugin_version,
        }


@dataclass
class ScrapeResult:
    """Products and per-item errors from one scrape."""

    products: list[Product] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    metadata: ScrapeMetadata = field(default_factory=ScrapeMetadata)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping; an empty error list is left out."""
        data: dict[str, Any] = {
            "products": [product.to_dict() for product in self.products]
        }
        if self.errors:
            data["errors"] = list(self.errors)
        data["metadata"] = self.metadata.to_dict()
        return data


class Plugin(Protocol):
    """A scraper for one kind of site.

    ``validate`` and ``scrape`` raise an exception to report a problem.
    """

    name: str
    version: str

    def supported_types(self) -> list[str]: ...

    def validate(self, request: ScrapeRequest) -> None: ...

    def scrape(self, request: ScrapeRequest) -> ScrapeResult: ...

    def required_credentials(self) -> list[str]: ...

    def supported_options(self) -> dict[str, str]: ...