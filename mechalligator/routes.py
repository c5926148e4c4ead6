"""Routing of the ``/api/jobs`` endpoints to the job handler."""

from __future__ import annotations

from collections.abc import Callable

from werkzeug.wrappers import Request, Response

from .job_handler import JobHandler

_PREFIX = "/api/jobs/"

Action = Callable[[Request], Response]


def _plain(message: str, status: int) -> Response:
    return Response(
        message + "\n",
        status=status,
        mimetype="text/plain",
        headers={"X-Content-Type-Options": "nosniff"},
    )


class JobRouter:
    """Sends each job request to the handler method for its path and method."""

    def __init__(self, handler: JobHandler) -> None:
        self._exact: dict[str, dict[str, Action]] = {
            "/api/jobs": {"GET": handler.list_jobs},
            "/api/jobs/scrape": {"POST": handler.create_scrape_job},
            "/api/jobs/scrape-all": {"POST": handler.create_scrape_all_job},
        }
        self._subtree: dict[str, Action] = {
            "GET": handler.get_job,
            "DELETE": handler.cancel_job,
        }

    def dispatch(self, request: Request) -> Response:
        """Return the handler's response, or a 404 or 405 error."""
        path = request.path
        if path in self._exact:
            actions = self._exact[path]
        elif path.startswith(_PREFIX):
            actions = self._subtree
        else:
            return _plain("404 page not found", 404)

        action = actions.get(request.method)
        if action is None:
            return _plain("Method not allowed", 405)
        return action(request)