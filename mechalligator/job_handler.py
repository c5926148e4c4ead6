"""HTTP handlers for creating, reading, listing and cancelling jobs."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from werkzeug.wrappers import Request, Response

from .database import DatabaseError
from .database_queue import QueueError
from .job_service import JobService, JobServiceError
from .jobtypes import Job, Status

_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_ZERO_TIME = "0001-01-01T00:00:00Z"
_DEFAULT_LIMIT = 50
_INTEGER = re.compile(r"[+-]?\d+")
_FAILURES = (JobServiceError, DatabaseError, QueueError, ValueError)


@dataclass
class CreateScrapeJobRequest:
    """Body of a request to scrape one site configuration."""

    config_id: str = ""
    options: dict[str, str] | None = None


def _decode_create_request(body: bytes) -> CreateScrapeJobRequest:
    text = body.decode("utf-8").lstrip()
    data, _ = json.JSONDecoder().raw_decode(text)
    if data is None:
        return CreateScrapeJobRequest()
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    config_id = data.get("config_id")
    if config_id is None:
        config_id = ""
    if not isinstance(config_id, str):
        raise ValueError("config_id must be a string")
    options = data.get("options")
    if options is not None and (
        not isinstance(options, dict)
        or not all(isinstance(value, str) for value in options.values())
    ):
        raise ValueError("options must be an object of strings")
    return CreateScrapeJobRequest(config_id=config_id, options=options)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value.value if isinstance(value, Enum) else str(value)


def _format_time(value: datetime | None) -> str:
    return _ZERO_TIME if value is None else value.strftime(_TIME_FORMAT)


def job_to_response(job: Job) -> dict[str, Any]:
    """Return the JSON-ready view of a job; empty optional fields are left out."""
    response: dict[str, Any] = {
        "id": job.id,
        "type": _text(job.type),
        "priority": int(job.priority or 0),
        "status": _text(job.status),
    }
    if job.payload:
        response["payload"] = job.payload
    if job.result:
        response["result"] = job.result
    if job.error:
        response["error"] = job.error
    response["attempts"] = job.attempts
    response["max_attempts"] = job.max_attempts
    response["scheduled_at"] = _format_time(job.scheduled_at)
    if job.started_at is not None:
        response["started_at"] = _format_time(job.started_at)
    if job.completed_at is not None:
        response["completed_at"] = _format_time(job.completed_at)
    response["created_at"] = _format_time(job.created_at)
    response["updated_at"] = _format_time(job.updated_at)
    return response


def _error(message: str, status: int) -> Response:
    return Response(
        message + "\n",
        status=status,
        mimetype="text/plain",
        headers={"X-Content-Type-Options": "nosniff"},
    )


def _json(data: Any, status: int = 200) -> Response:
    return Response(json.dumps(data) + "\n", status=status, mimetype="application/json")


class JobHandler:
    """Turns HTTP requests into job service calls."""

    def __init__(self, job_service: JobService) -> None:
        self._service = job_service

    def create_scrape_job(self, request: Request) -> Response:
        try:
            body = _decode_create_request(request.get_data())
        except ValueError:
            return _error("Invalid request body", 400)
        if not body.config_id:
            return _error("config_id is required", 400)

        try:
            job = self._service.create_scrape_job(body.config_id, body.options)
        except _FAILURES as err:
            return _error(str(err), 500)
        return _json(job_to_response(job), 201)

    def create_scrape_all_job(self, request: Request) -> Response:
        try:
            job = self._service.create_scrape_all_sites_job()
        except _FAILURES as err:
            return _error(str(err), 500)
        return _json(job_to_response(job), 201)

    def get_job(self, request: Request) -> Response:
        job_id = request.args.get("id", "")
        if not job_id:
            return _error("job id is required", 400)
        try:
            job = self._service.get_job(job_id)
        except _FAILURES as err:
            return _error(str(err), 500)
        if job is None:
            return _error("job not found", 404)
        return _json(job_to_response(job))

    def list_jobs(self, request: Request) -> Response:
        status_text = request.args.get("status", "")
        status: Status | None = Status.PENDING
        if status_text:
            try:
                status = Status(status_text)
            except ValueError:
                status = None

        limit = _DEFAULT_LIMIT
        limit_text = request.args.get("limit", "")
        if _INTEGER.fullmatch(limit_text) and int(limit_text) > 0:
            limit = int(limit_text)

        if status is None:
            jobs: list[Job] = []
        else:
            try:
                jobs = self._service.list_jobs(status, limit)
            except _FAILURES as err:
                return _error(str(err), 500)

        responses = [job_to_response(job) for job in jobs]
        return _json({"jobs": responses or None, "count": len(responses)})

    def cancel_job(self, request: Request) -> Response:
        job_id = request.args.get("id", "")
        if not job_id:
            return _error("job id is required", 400)
        try:
            self._service.cancel_job(job_id)
        except _FAILURES as err:
            return _error(str(err), 500)
        return _json({"message": "job cancelled successfully"})