"""Job handler that scrapes a site and stores its products and images."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from .database import Database, DatabaseError
from .database_queue import QueueError
from .ids import new_ulid
from .jobtypes import (
    Job,
    JobQueue,
    JobType,
    Priority,
    ScrapeJobPayload,
    ScrapeJobResult,
)
from .manager import Manager, _format_duration
from .scraper_types import Product, ScrapeRequest, ScraperError

log = logging.getLogger(__name__)

_PRODUCT_ID_LENGTH = 15

_FIND_PRODUCT = """
    SELECT id FROM products
    WHERE name = $1 AND url = $2
    LIMIT 1
"""
_UPDATE_PRODUCT = """
    UPDATE products
    SET description = $1, price = $2, currency = $3, in_stock = $4,
        updated_at = CURRENT_TIMESTAMP
    WHERE id = $5
"""
_INSERT_PRODUCT = """
    INSERT INTO products (id, name, description, price, currency, url, config_id,
                          in_stock, created_at, updated_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
"""
_UPDATE_IMAGE = """
    UPDATE product_images
    SET product_id = $1, url = $2, updated_at = CURRENT_TIMESTAMP
    WHERE id = $3
"""
_INSERT_IMAGE = """
    INSERT INTO product_images (uuid, product_id, url, created_at, updated_at)
    VALUES ($1, $2, $3, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
"""


def generate_image_id(product_id: str, image_url: str) -> str:
    """Return the image key: the product id and the length of the URL."""
    return f"{product_id}-{len(image_url)}"


class ScrapeJobHandler:
    """Runs scrape jobs: scrapes the site, saves products and queues tagging."""

    job_type = JobType.SCRAPE_PRODUCTS

    def __init__(self, db: Database, manager: Manager, queue: JobQueue) -> None:
        self._db = db
        self._manager = manager
        self._queue = queue

    def handle(self, job: Job) -> None:
        """Scrape the site named in the job's payload and store the summary."""
        log.info("Processing scrape job %s", job.id)
        try:
            payload = ScrapeJobPayload.from_dict(job.payload)
        except ValueError as err:
            raise ValueError(f"failed to unmarshal payload: {err}") from err

        request = ScrapeRequest(
            config_id=payload.config_id,
            vendor_id=payload.vendor_id,
            vendor_name=payload.vendor_name,
            site_url=payload.site_url,
            site_type=payload.site_type,
            category=payload.category,
            credentials=dict(payload.credentials),
            options=dict(payload.options),
        )

        started_at = datetime.now(timezone.utc)
        started = time.perf_counter_ns()
        try:
            result = self._manager.scrape_by_type(request)
        except ScraperError as err:
            raise ScraperError(f"scraping failed: {err}") from err

        log.info("Scraped %d products from %s", len(result.products), payload.site_url)

        created, updated, images, errors = self.save_products(result.products, payload)

        job.result = ScrapeJobResult(
            products_created=created,
            products_updated=updated,
            images_processed=images,
            total_errors=len(errors),
            errors=errors,
            duration=_format_duration(time.perf_counter_ns() - started),
            scraped_at=started_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        ).to_dict()

        log.info(
            "Job %s completed: %d created, %d updated, %d images, %d errors",
            job.id,
            created,
            updated,
            images,
            len(errors),
        )

    def save_products(
        self, products: list[Product], payload: ScrapeJobPayload
    ) -> tuple[int, int, int, list[str]]:
        """Save every product; return created, updated, image counts and errors."""
        created = updated = images_processed = 0
        errors: list[str] = []

        for product in products:
            try:
                product_id = self.save_product(product, payload)
            except DatabaseError as err:
                errors.append(f"Failed to save product {product.name}: {err}")
                continue

            try:
                self.enqueue_tag_job(product_id)
            except (QueueError, DatabaseError, ValueError) as err:
                errors.append(
                    f"failed to enqueue tag job for product {product_id}: {err}"
                )

            # Every saved product is counted as created.
            created += 1

            image_count, image_errors = self.save_product_images(
                product_id, product.images
            )
            images_processed += image_count
            errors.extend(image_errors)

        return created, updated, images_processed, errors

    def save_product(self, product: Product, payload: ScrapeJobPayload) -> str:
        """Update the product with the same name and URL, or insert a new one."""
        try:
            row = self._db.query_row(_FIND_PRODUCT, product.name, product.url)
        except DatabaseError as err:
            raise DatabaseError(f"failed to check existing product: {err}") from err

        if row is not None and row[0]:
            existing_id = row[0]
            self._db.execute(
                _UPDATE_PRODUCT,
                product.description,
                product.price,
                product.currency,
                product.in_stock,
                existing_id,
            )
            return existing_id

        product_id = new_ulid()[:_PRODUCT_ID_LENGTH]
        self._db.execute(
            _INSERT_PRODUCT,
            product_id,
            product.name,
            product.description,
            product.price,
            product.currency,
            product.url,
            payload.config_id,
            product.in_stock,
        )
        return product_id

    def save_product_images(
        self, product_id: str, images: list[str]
    ) -> tuple[int, list[str]]:
        """Insert or update the product's images; return the count saved and errors."""
        keys: list[str] = []
        url_by_key: dict[str, str] = {}
        for image_url in images:
            if not image_url:
                continue
            key = generate_image_id(product_id, image_url)
            keys.append(key)
            url_by_key[key] = image_url

        if not keys:
            return 0, []

        placeholders = ", ".join(f"${n}" for n in range(1, len(keys) + 1))
        try:
            rows = self._db.query(
                f"SELECT uuid, id FROM product_images WHERE uuid IN ({placeholders})",
                *keys,
            )
        except DatabaseError as err:
            return 0, [f"Failed to fetch existing images: {err}"]

        existing = {key: image_id for key, image_id in rows}

        count = 0
        errors: list[str] = []
        for key in keys:
            image_url = url_by_key[key]
            if key in existing:
                try:
                    self._db.execute(_UPDATE_IMAGE, product_id, image_url, existing[key])
                except DatabaseError as err:
                    errors.append(f"Failed to update image: {err}")
                    continue
            else:
                try:
                    self._db.execute(_INSERT_IMAGE, key, product_id, image_url)
                except DatabaseError as err:
                    errors.append(f"Failed to insert image: {err}")
                    continue
            count += 1

        return count, errors

    def enqueue_tag_job(self, product_id: str) -> Job:
        """Queue a job that tags the product, and return it."""
        job = Job(
            id=new_ulid(),
            type=JobType.TAG_PRODUCT,
            priority=Priority.NORMAL,
            payload={"product_id": product_id},
            max_attempts=3,
            scheduled_at=datetime.now(timezone.utc),
        )
        self._queue.enqueue(job)
        return job