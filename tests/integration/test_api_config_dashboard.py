"""Integration tests for config, dashboard and health endpoints.

Endpoints tested
----------------
GET /config      - tracker config
PUT /config      - partial update with date validation
GET /dashboard   - aggregated progress (``get_today`` overridden)
GET /health      - data file check
GET /            - service info

Startup failures of the app lifespan are covered at the end.
"""

from __future__ import annotations

from datetime import date

import pytest


@pytest.fixture
def fixed_today():
    """Pin the dashboard's reference day to 2024-03-01."""
    from study_tracker.api.dependencies import get_today
    from study_tracker.main import app

    app.dependency_overrides[get_today] = lambda: date(2024, 3, 1)
    return date(2024, 3, 1)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def test_get_config_defaults_to_blank_fields(test_client):
    response = test_client.get("/config")

    assert response.status_code == 200
    assert response.json() == {
        "startDate": "",
        "targetDate": "",
        "brandTitle": "",
        "brandSubtitle": "",
    }


def test_put_config_is_partial(test_client, seeded_store):
    response = test_client.put("/config", json={"targetDate": "2024-11-01"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["targetDate"] == "2024-11-01"
    assert body["startDate"] == "2024-01-01", "Omitted fields must keep their value"
    assert body["brandTitle"] == "CA Final"


def test_put_config_clears_date_with_empty_string(test_client, seeded_store):
    response = test_client.put("/config", json={"startDate": ""})

    assert response.status_code == 200
    assert response.json()["startDate"] == ""


@pytest.mark.parametrize("bad", ["01/11/2024", "2024-13-01", "tomorrow"])
def test_put_config_rejects_non_iso_dates(test_client, bad):
    response = test_client.put("/config", json={"startDate": bad})

    assert response.status_code == 422, (
        f"Expected 422 for startDate={bad!r}, got {response.status_code}: {response.text}"
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def test_dashboard_empty_store_uses_brand_defaults(test_client, fixed_today):
    response = test_client.get("/dashboard")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["brandTitle"] == "Study Tracker"
    assert body["brandSubtitle"] == "Exam Preparation"
    assert body["overallPercent"] == 0
    assert body["triage"]["state"] == "no_subjects"
    assert body["pace"]["pace"] is None


def test_dashboard_with_sample_data(test_client, seeded_store, fixed_today):
    body = test_client.get("/dashboard").json()

    assert body["overallPercent"] == 36
    assert body["completeChapters"] == 1
    assert body["totalChapters"] == 4
    assert body["pace"] == {
        "actualPercent": 36,
        "expectedPercent": 50,
        "daysRemaining": 61,
        "pace": "behind",
    }, f"Unexpected pace badge: {body['pace']}"
    assert [e["chapterId"] for e in body["triage"]["entries"]] == ["ch-tax-1", "ch-tax-2"]


# ---------------------------------------------------------------------------
# Health and root
# ---------------------------------------------------------------------------


def test_health_ok(test_client, seeded_store):
    response = test_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["storage"] == {"status": "ok", "subjects": "2"}


def test_corrupt_data_file_degrades_health_and_returns_503(test_client, json_store):
    """A corrupt file is reported, not silently replaced."""
    json_store.path.write_text("{oops", encoding="utf-8")

    health = test_client.get("/health").json()
    assert health["status"] == "degraded"
    assert health["storage"]["status"] == "error"

    response = test_client.get("/subjects")
    assert response.status_code == 503, (
        f"Expected 503 for unreadable data file, got {response.status_code}: {response.text}"
    )
    assert response.json()["error"] == "storage_unavailable"


def test_root_lists_service_info(test_client):
    body = test_client.get("/").json()

    assert body["service"] == "Study Tracker API"
    assert body["health"] == "/health"


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def test_startup_fails_cleanly_when_data_file_cannot_be_written(monkeypatch, tmp_path, caplog):
    """A store write error during startup aborts with the fatal log line."""
    from fastapi.testclient import TestClient

    from study_tracker import main
    from study_tracker.exceptions import StorageError
    from study_tracker.services.json_store import JSONStore

    def refuse_write(self, document):
        raise StorageError("Cannot write data file: read-only file system", str(self.path))

    monkeypatch.setattr(main._settings, "data_file", str(tmp_path / "fresh" / "subjects.json"))
    monkeypatch.setattr(JSONStore, "_write", refuse_write)

    with pytest.raises(RuntimeError, match="data file unavailable"):
        with TestClient(main.app):
            pass

    fatal = [r for r in caplog.records if r.levelname == "CRITICAL"]
    assert fatal and "cannot create data file" in fatal[0].getMessage(), (
        f"Expected a CRITICAL startup record, got {[r.getMessage() for r in caplog.records]}"
    )
