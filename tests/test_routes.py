import pytest
from werkzeug.wrappers import Request, Response

from mechalligator.routes import JobRouter


class RecordingHandler:
    def list_jobs(self, request):
        return Response("list_jobs")

    def create_scrape_job(self, request):
        return Response("create_scrape_job")

    def create_scrape_all_job(self, request):
        return Response("create_scrape_all_job")

    def get_job(self, request):
        return Response("get_job")

    def cancel_job(self, request):
        return Response("cancel_job")


@pytest.fixture
def router():
    return JobRouter(RecordingHandler())


def call(router, method, path):
    return router.dispatch(Request.from_values(path=path, method=method))


@pytest.mark.parametrize(
    ("method", "path", "expected"),
    [
        ("GET", "/api/jobs", b"list_jobs"),
        ("POST", "/api/jobs/scrape", b"create_scrape_job"),
        ("POST", "/api/jobs/scrape-all", b"create_scrape_all_job"),
        ("GET", "/api/jobs/abc", b"get_job"),
        ("DELETE", "/api/jobs/abc", b"cancel_job"),
        ("GET", "/api/jobs/", b"get_job"),
    ],
)
def test_routes_dispatch(router, method, path, expected):
    response = call(router, method, path)
    assert response.status_code == 200
    assert response.get_data() == expected


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("POST", "/api/jobs"),
        ("GET", "/api/jobs/scrape"),
        ("DELETE", "/api/jobs/scrape-all"),
        ("POST", "/api/jobs/abc"),
    ],
)
def test_wrong_method(router, method, path):
    response = call(router, method, path)
    assert response.status_code == 405
    assert response.get_data() == b"Method not allowed\n"


def test_unknown_path(router):
    response = call(router, "GET", "/elsewhere")
    assert response.status_code == 404
    assert response.get_data() == b"404 page not found\n"