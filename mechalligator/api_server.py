"""HTTP API server for managing scrape jobs."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
import time
from collections.abc import Iterable
from typing import Any, Callable

from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response

from .config import ConfigError, load_database_config
from .database import DatabaseError, connect
from .database_queue import DatabaseQueue
from .job_handler import JobHandler
from .job_repository import JobRepository
from .job_service import JobService
from .manager import _format_duration
from .routes import JobRouter

log = logging.getLogger(__name__)

DEFAULT_PORT = "8080"


def get_port() -> str:
    """Return the port from BACKEND_PORT, or 8080 when it is unset or empty."""
    return os.environ.get("BACKEND_PORT") or DEFAULT_PORT


class ApiApplication:
    """WSGI application: a health check, the job routes and request logging."""

    def __init__(self, router: JobRouter) -> None:
        self._router = router

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        started = time.perf_counter_ns()
        request = Request(environ)
        if request.path == "/health":
            response = Response("OK", status=200, mimetype="text/plain")
        else:
            response = self._router.dispatch(request)
        body = response(environ, start_response)
        log.info(
            "%s %s %s",
            request.method,
            request.path,
            _format_duration(time.perf_counter_ns() - started),
        )
        return body


def _wait_for_shutdown_signal() -> None:
    received = threading.Event()

    def _on_signal(signum: int, frame: object) -> None:
        received.set()

    previous = {
        signum: signal.signal(signum, _on_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        while not received.wait(1.0):
            pass
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def main(argv: list[str] | None = None) -> int:
    """Run the API server until SIGINT or SIGTERM; return the exit status."""
    argparse.ArgumentParser(
        prog="mechalligator-api", description="Serve the job API."
    ).parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    log.info("Starting API server...")

    config = load_database_config()
    try:
        config.validate()
    except ConfigError as err:
        log.error("Invalid database config: %s", err)
        return 1

    try:
        db = connect(config)
    except DatabaseError as err:
        log.error("Failed to connect to database: %s", err)
        return 1

    with db:
        try:
            db.health()
        except DatabaseError as err:
            log.error("Database health check failed: %s", err)
            return 1
        log.info("Database connection established")

        queue = DatabaseQueue(JobRepository(db))
        service = JobService(db, queue)
        app = ApiApplication(JobRouter(JobHandler(service)))

        port = get_port()
        try:
            server = make_server("0.0.0.0", int(port), app, threaded=True)
        except (OSError, ValueError) as err:
            log.error("Failed to start server: %s", err)
            return 1

        thread = threading.Thread(
            target=server.serve_forever, name="api-server", daemon=True
        )
        log.info("API server starting on port %s", port)
        thread.start()
        log.info("API server started successfully")

        _wait_for_shutdown_signal()
        log.info("Received shutdown signal...")

        server.shutdown()
        server.server_close()
        thread.join(timeout=30.0)
        if thread.is_alive():
            log.error("Error during shutdown: server did not stop in time")

    log.info("API server stopped")
    return 0