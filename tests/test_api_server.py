import logging

import pytest
from werkzeug.test import Client

from mechalligator.api_server import ApiApplication, get_port, main
from mechalligator.job_handler import JobHandler
from mechalligator.jobtypes import Status
from mechalligator.routes import JobRouter


class _StubService:
    def __init__(self):
        self.list_calls = []
        self.get_calls = []

    def list_jobs(self, status, limit):
        self.list_calls.append((status, limit))
        return []

    def get_job(self, job_id):
        self.get_calls.append(job_id)
        return None

    def cancel_job(self, job_id):
        raise AssertionError("not expected")


def _client(service):
    app = ApiApplication(JobRouter(JobHandler(service)))
    return Client(app)


def test_get_port_default(monkeypatch):
    monkeypatch.delenv("BACKEND_PORT", raising=False)
    assert get_port() == "8080"


def test_get_port_from_environment(monkeypatch):
    monkeypatch.setenv("BACKEND_PORT", "9191")
    assert get_port() == "9191"


def test_get_port_empty_uses_default(monkeypatch):
    monkeypatch.setenv("BACKEND_PORT", "")
    assert get_port() == "8080"


def test_health_answers_ok():
    response = _client(_StubService()).get("/health")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"


def test_health_answers_any_method():
    response = _client(_StubService()).post("/health")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"


def test_list_jobs_uses_defaults():
    service = _StubService()
    response = _client(service).get("/api/jobs")
    assert response.status_code == 200
    assert response.get_json() == {"jobs": None, "count": 0}
    assert service.list_calls == [(Status.PENDING, 50)]


def test_wrong_method_is_rejected():
    response = _client(_StubService()).post("/api/jobs")
    assert response.status_code == 405
    assert response.get_data(as_text=True) == "Method not allowed\n"


def test_unknown_path_is_not_found():
    response = _client(_StubService()).get("/nowhere")
    assert response.status_code == 404


def test_missing_job_is_not_found():
    service = _StubService()
    response = _client(service).get("/api/jobs/abc?id=abc")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "job not found\n"
    assert service.get_calls == ["abc"]


def test_requests_are_logged(caplog):
    caplog.set_level(logging.INFO, logger="mechalligator.api_server")
    _client(_StubService()).get("/health")
    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("GET /health ") for message in messages)


def test_main_rejects_invalid_config(monkeypatch):
    monkeypatch.setenv("DB_PORT", "0")
    assert main([]) == 1


def test_main_reports_unreachable_database(monkeypatch, tmp_path):
    monkeypatch.delenv("DB_PORT", raising=False)
    monkeypatch.setenv("DB_NAME", str(tmp_path))
    assert main([]) == 1


def test_main_rejects_unknown_arguments():
    with pytest.raises(SystemExit):
        main(["--bogus"])