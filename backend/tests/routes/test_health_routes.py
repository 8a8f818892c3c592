from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.api.dependencies.services import get_teacher_service
from app.core.exceptions import RepositoryException
from app.main import app


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
def test_health(client, path):
    r = client.get(path)
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.json()["studio_timezone"] == "Asia/Bangkok"
    assert r.headers["X-Service-Version"]


def test_metrics_exposes_service_operations(client, customer_headers, customer_package):
    client.get("/api/v1/packages/me", headers=customer_headers)
    r = client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "studio_http_requests_total" in r.text
    assert "studio_prometheus_scrapes_total" in r.text


def test_unknown_route_is_problem_json(client):
    r = client.get("/api/v1/nowhere")
    assert r.status_code == 404
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.json()["instance"] == "/api/v1/nowhere"


def test_repository_failure_is_database_error(client):
    failing = MagicMock()
    failing.list_teachers.side_effect = RepositoryException("Failed loading Teacher")
    app.dependency_overrides[get_teacher_service] = lambda: failing

    r = client.get("/api/v1/teachers")

    assert r.status_code == 500
    assert r.json()["code"] == "database_error"
    assert r.headers["content-type"].startswith("application/problem+json")
