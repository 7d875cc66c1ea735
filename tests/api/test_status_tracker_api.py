"""Tests for status-tracker/app/api.py — FastAPI endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api import app as _app


@pytest.fixture()
def client():
    return TestClient(_app)


@pytest.fixture()
def employed(client):
    resp = client.post("/api/profile", json={
        "name": "Wei",
        "current_status": "EMPLOYED",
        "graduation_date": "2024-05-15",
        "program_end_date": "2024-05-15",
        "ead_received_date": "2024-07-01",
        "ead_expiry_date": "2025-06-30",
        "employment_start_date": "2024-07-15",
        "current_employer": "Acme Corp",
        "has_stem_degree": True,
    })
    assert resp.status_code == 201
    return resp.json()


# ── Statuses ─────────────────────────────────────────────────────────────


def test_list_statuses(client):
    resp = client.get("/api/statuses")
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 21
    first = data[0]
    assert first["value"] == "F1_STUDENT"
    assert first["label"] == "F-1 Student"
    assert first["phase"] == "STUDENT"


def test_transitions(client):
    resp = client.get("/api/statuses/employed/transitions")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "EMPLOYED"
    assert data["recommended"] == "H1B_PREPARING"
    assert "OTHER" in data["next_statuses"]
    assert data["suggestions"][0]["status"] == "H1B_PREPARING"
    assert data["is_terminal"] is False


def test_transitions_unknown_status(client):
    assert client.get("/api/statuses/H4_DEPENDENT/transitions").status_code == 404


# ── Profile CRUD ─────────────────────────────────────────────────────────


def test_get_profile_missing(client):
    resp = client.get("/api/profile")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Profile not found"


def test_create_and_get_profile(client, employed):
    assert employed["current_status"] == "EMPLOYED"
    assert employed["has_job_offer"] is False
    resp = client.get("/api/profile")
    assert resp.status_code == 200
    assert resp.json() == employed


def test_create_with_invalid_status(client):
    resp = client.post("/api/profile", json={"current_status": "TOURIST"})
    assert resp.status_code == 422


def test_update_profile(client, employed):
    resp = client.put("/api/profile", json={"job_title": "Engineer", "ead_expiry_date": "2025-07-31"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["job_title"] == "Engineer"
    assert data["ead_expiry_date"] == "2025-07-31"
    assert data["created_at"] == employed["created_at"]


def test_update_ignores_null_for_required_fields(client, employed):
    resp = client.put("/api/profile", json={"current_status": None, "name": None, "has_stem_degree": None, "job_title": "Engineer"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["current_status"] == "EMPLOYED"
    assert data["name"] == "Wei"
    assert data["has_stem_degree"] is True
    assert data["job_title"] == "Engineer"


def test_update_clears_optional_field(client, employed):
    resp = client.put("/api/profile", json={"current_employer": None})
    assert resp.status_code == 200
    assert resp.json()["current_employer"] is None


def test_update_missing_profile(client):
    assert client.put("/api/profile", json={"name": "X"}).status_code == 404


def test_delete_profile(client, employed):
    resp = client.delete("/api/profile")
    assert resp.status_code == 200
    assert resp.json() == {"deleted": True}
    assert client.get("/api/profile").status_code == 404
    assert client.delete("/api/profile").status_code == 404


# ── Status changes ───────────────────────────────────────────────────────


def test_change_status(client, employed):
    resp = client.post("/api/profile/status", json={"status": "H1B_PREPARING"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["profile"]["current_status"] == "H1B_PREPARING"
    titles = [d["title"] for d in data["deadlines"]]
    assert "H-1B Registration Period" in titles
    assert len(titles) == len(set(titles))


def test_change_status_invalid_transition(client, employed):
    resp = client.post("/api/profile/status", json={"status": "H1B_ACTIVE"})
    assert resp.status_code == 422
    assert "EMPLOYED" in resp.json()["detail"]
    assert client.get("/api/profile").json()["current_status"] == "EMPLOYED"


def test_change_status_unknown(client, employed):
    assert client.post("/api/profile/status", json={"status": "NOPE"}).status_code == 404


def test_change_status_without_profile(client):
    assert client.post("/api/profile/status", json={"status": "GRADUATED"}).status_code == 404


# ── Timeline / deadlines ─────────────────────────────────────────────────


def test_timeline(client, employed):
    resp = client.get("/api/timeline", params={"as_of": "2025-01-15"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["current_status"] == "EMPLOYED"
    assert data["as_of"] == "2025-01-15"
    types = {d["type"] for d in data["deadlines"]}
    assert "H1B_REGISTRATION_PERIOD" in types
    assert data["upcoming_deadlines"][0]["due_date"] == "2025-03-01"
    assert [e["title"] for e in data["events"]][0] == "Graduate from University"


def test_timeline_bad_date(client, employed):
    assert client.get("/api/timeline", params={"as_of": "soon"}).status_code == 422


def test_timeline_without_profile(client):
    assert client.get("/api/timeline").status_code == 404


def test_upcoming_deadlines(client, employed):
    resp = client.get("/api/deadlines/upcoming", params={"limit": 2, "today": "2025-01-15"})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 2
    assert data[0]["due_date"] <= data[1]["due_date"]


def test_list_deadlines(client, employed):
    resp = client.get("/api/deadlines")
    assert resp.status_code == 200
    due = [d["due_date"] for d in resp.json()]
    assert due == sorted(due)


# ── Forms / documents / resources ────────────────────────────────────────


def test_form_config(client):
    resp = client.get("/api/form-config/EMPLOYED")
    assert resp.status_code == 200
    data = resp.json()
    assert data["required"] == ["current_employer", "employment_start_date"]
    assert data["fields"]["current_employer"]["label"] == "Employer Name"


def test_form_config_unknown(client):
    assert client.get("/api/form-config/NOPE").status_code == 404


def test_validate_payload(client):
    resp = client.post("/api/profile/validate", json={"status": "EMPLOYED", "data": {}})
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_valid"] is False
    assert len(data["errors"]) == 2


def test_validate_stored_profile(client, employed):
    resp = client.post("/api/profile/validate", json={})
    assert resp.status_code == 200
    assert resp.json() == {"status": "EMPLOYED", "is_valid": True, "errors": []}


def test_validate_without_profile(client):
    assert client.post("/api/profile/validate", json={}).status_code == 404


def test_documents(client, employed):
    resp = client.get("/api/documents", params={"today": "2025-01-15"})
    assert resp.status_code == 200
    data = resp.json()
    assert "EAD Card" in data["required"]
    assert data["tracked"][0]["name"] == "EAD Card"


def test_resources(client):
    resp = client.get("/api/resources/opt")
    assert resp.status_code == 200
    assert resp.json()[0]["type"] == "USCIS_GUIDE"
    assert client.get("/api/resources/unknown").status_code == 404
