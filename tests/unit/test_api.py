"""Tests for the HTTP API routes."""

import pytest
from fastapi.testclient import TestClient

from uiforge.api import create_app
from uiforge.core import create_container


@pytest.fixture
def make_api(settings, scripted_client):
    def factory(*responses):
        completion = scripted_client(*responses)
        app = create_app(create_container(settings, client=completion))
        return TestClient(app), completion

    return factory


@pytest.mark.unit
def test_health(make_api):
    api, _ = make_api()

    with api:
        response = api.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["versions"] == 0


@pytest.mark.unit
def test_metrics_endpoint(make_api):
    api, _ = make_api()

    response = api.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.unit
def test_generate_then_browse_versions(make_api, reasoning_json, dashboard_plan_json, dashboard_markup):
    api, completion = make_api(reasoning_json, dashboard_plan_json, dashboard_markup)

    with api:
        response = api.post("/api/generate", json={"userMessage": "Build a sales dashboard"})
        assert response.status_code == 200
        assert response.json()["code"] == dashboard_markup

        listing = api.get("/api/versions").json()
        assert listing["currentIndex"] == 0
        assert len(listing["versions"]) == 1

        selected = api.post("/api/versions/0/select")
        assert selected.status_code == 200
        assert selected.json()["version"]["code"] == dashboard_markup

        rendered = api.get("/api/versions/current/render")
        assert rendered.status_code == 200
        assert rendered.json()["success"] is True

        assert api.post("/api/versions/3/select").status_code == 404

    assert completion.calls == 3


@pytest.mark.unit
@pytest.mark.parametrize("route", ["/api/generate", "/api/modify"])
def test_invalid_json_body(make_api, route):
    api, completion = make_api()

    response = api.post(route, content=b"{not json", headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON payload."}
    assert completion.calls == 0


@pytest.mark.unit
def test_invalid_request_body(make_api):
    api, _ = make_api()

    response = api.post("/api/generate", json={"message": "hi"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request:")


@pytest.mark.unit
def test_version_routes_without_history(make_api):
    api, _ = make_api()

    assert api.get("/api/versions").json() == {"success": True, "currentIndex": -1, "versions": []}
    assert api.post("/api/versions/rollback").status_code == 404
    assert api.get("/api/versions/current/render").status_code == 404
