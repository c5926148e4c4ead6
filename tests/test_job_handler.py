import json
import sqlite3
from datetime import datetime, timezone

import pytest
from werkzeug.wrappers import Request

from mechalligator.database import Database
from mechalligator.database_queue import DatabaseQueue
from mechalligator.job_handler import JobHandler, job_to_response
from mechalligator.job_repository import JobRepository
from mechalligator.job_service import JobService
from mechalligator.jobtypes import Job, JobType, Priority, Status

SCHEMA = (
    """CREATE TABLE jobs (
        id TEXT PRIMARY KEY, type TEXT NOT NULL, priority INTEGER, status TEXT,
        payload TEXT, result TEXT, error TEXT, attempts INTEGER, max_attempts INTEGER,
        scheduled_at TEXT, started_at TEXT, completed_at TEXT, created_at TEXT,
        updated_at TEXT)""",
    "CREATE TABLE vendors (id TEXT PRIMARY KEY, name TEXT, country TEXT)",
    """CREATE TABLE site_configurations (
        id TEXT PRIMARY KEY, vendor_id TEXT, name TEXT, endpoint TEXT, type TEXT,
        category TEXT, active INTEGER)""",
)


@pytest.fixture
def db():
    database = Database(sqlite3.connect(":memory:", check_same_thread=False))
    for statement in SCHEMA:
        database.execute(statement)
    yield database
    database.close()


@pytest.fixture
def handler(db):
    return JobHandler(JobService(db, DatabaseQueue(JobRepository(db))))


def add_site(db, config_id, name, active=True):
    db.execute("INSERT OR IGNORE INTO vendors VALUES ($1, $2, $3)", "v1", "Keeb Vendor", "IN")
    db.execute(
        "INSERT INTO site_configurations VALUES ($1, $2, $3, $4, $5, $6, $7)",
        config_id, "v1", name, "https://shop.example.com", "SHOPIFY", "KEYBOARD", active,
    )


def request(method="GET", query=None, body=None):
    return Request.from_values(
        path="/api/jobs", method=method, query_string=query or {}, data=body
    )


def body_of(response):
    return json.loads(response.get_data(as_text=True))


def create(handler, config_id):
    return handler.create_scrape_job(
        request("POST", body=json.dumps({"config_id": config_id}))
    )


def test_create_rejects_invalid_body(handler):
    response = handler.create_scrape_job(request("POST", body=b"not json"))
    assert response.status_code == 400
    assert response.get_data() == b"Invalid request body\n"


def test_create_rejects_empty_body(handler):
    response = handler.create_scrape_job(request("POST", body=b""))
    assert response.status_code == 400
    assert response.get_data() == b"Invalid request body\n"


def test_create_requires_config_id(handler):
    response = handler.create_scrape_job(request("POST", body=b"{}"))
    assert response.status_code == 400
    assert response.get_data() == b"config_id is required\n"


def test_create_and_get_job(db, handler):
    add_site(db, "cfg1", "Alpha")
    response = create(handler, "cfg1")
    assert response.status_code == 201
    assert response.mimetype == "application/json"
    data = body_of(response)
    assert data["type"] == "scrape_products"
    assert data["status"] == "pending"
    assert data["priority"] == int(Priority.NORMAL)
    assert data["payload"]["config_id"] == "cfg1"
    assert data["payload"]["all_pages"] is True
    assert data["id"].startswith("scrape_cfg1_")

    fetched = handler.get_job(request(query={"id": data["id"]}))
    assert fetched.status_code == 200
    assert body_of(fetched)["id"] == data["id"]


def test_create_unknown_config(handler):
    response = create(handler, "nope")
    assert response.status_code == 500
    assert response.get_data(as_text=True).startswith("failed to get site configuration")


def test_create_inactive_config(db, handler):
    add_site(db, "cfg1", "Alpha", active=False)
    response = create(handler, "cfg1")
    assert response.status_code == 500
    assert response.get_data() == b"site configuration cfg1 is not active\n"


def test_get_job_errors(handler):
    assert handler.get_job(request()).status_code == 400
    missing = handler.get_job(request(query={"id": "ghost"}))
    assert missing.status_code == 404
    assert missing.get_data() == b"job not found\n"


def test_list_jobs_default_pending_and_limit(db, handler):
    add_site(db, "cfg1", "Alpha")
    add_site(db, "cfg2", "Beta")
    create(handler, "cfg1")
    create(handler, "cfg2")

    everything = body_of(handler.list_jobs(request()))
    assert everything["count"] == 2
    assert {job["status"] for job in everything["jobs"]} == {"pending"}

    limited = body_of(handler.list_jobs(request(query={"limit": "1"})))
    assert limited["count"] == 1

    bad_limit = body_of(handler.list_jobs(request(query={"limit": "abc"})))
    assert bad_limit["count"] == 2


def test_list_jobs_empty_status(handler):
    data = body_of(handler.list_jobs(request(query={"status": "completed"})))
    assert data == {"jobs": None, "count": 0}
    unknown = body_of(handler.list_jobs(request(query={"status": "weird"})))
    assert unknown == {"jobs": None, "count": 0}


def test_cancel_flow(db, handler):
    add_site(db, "cfg1", "Alpha")
    job_id = body_of(create(handler, "cfg1"))["id"]

    response = handler.cancel_job(request("DELETE", query={"id": job_id}))
    assert response.status_code == 200
    assert body_of(response) == {"message": "job cancelled successfully"}
    assert body_of(handler.get_job(request(query={"id": job_id})))["status"] == "cancelled"

    again = handler.cancel_job(request("DELETE", query={"id": job_id}))
    assert again.status_code == 500
    assert again.get_data() == b"job is not in pending status\n"


def test_cancel_errors(handler):
    assert handler.cancel_job(request("DELETE")).status_code == 400
    missing = handler.cancel_job(request("DELETE", query={"id": "ghost"}))
    assert missing.status_code == 500
    assert missing.get_data() == b"job not found\n"


def test_scrape_all(db, handler):
    add_site(db, "cfg1", "Alpha")
    response = handler.create_scrape_all_job(request("POST"))
    assert response.status_code == 201
    data = body_of(response)
    assert data["type"] == "scrape_all_sites"
    assert data["status"] == "completed"
    assert data["result"] == {"jobs_created": 1}
    assert data["payload"]["total_jobs"] == 1


def test_scrape_all_without_sites(handler):
    response = handler.create_scrape_all_job(request("POST"))
    assert response.status_code == 500
    assert response.get_data() == b"no active site configurations found\n"


def test_job_to_response_formats_and_omits():
    when = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    job = Job(
        id="j1",
        type=JobType.TAG_PRODUCT,
        priority=Priority.HIGH,
        status=Status.PENDING,
        payload={},
        max_attempts=3,
        scheduled_at=when,
        created_at=when,
        updated_at=when,
    )
    data = job_to_response(job)
    assert data["scheduled_at"] == "2024-05-06T07:08:09Z"
    assert data["type"] == "tag_product"
    assert data["priority"] == int(Priority.HIGH)
    for key in ("payload", "result", "error", "started_at", "completed_at"):
        assert key not in data