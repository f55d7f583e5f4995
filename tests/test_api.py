from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import new_client_session
from vetintake.domain.entities.pages import NO_PREFERENCE, Page
from vetintake.domain.entities.pet import ExistingPet
from vetintake.main import app
from vetintake.wiring.dependencies import get_intake_workflow


@pytest.fixture
def client(workflow):
    app.dependency_overrides[get_intake_workflow] = lambda: workflow
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_session(client, **body) -> str:
    resp = client.post("/v1/intake/sessions", json=body or None)
    assert resp.status_code == 201
    return resp.json()["session_id"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_new_session_starts_at_intro_with_reference_data(client):
    resp = client.post("/v1/intake/sessions")
    assert resp.status_code == 201
    data = resp.json()
    assert data["current_page"] == "intro"
    assert data["has_previous"] is False

    data = client.get(f"/v1/intake/sessions/{data['session_id']}", params={"wait": True}).json()

    assert [o["label"] for o in data["appointment_types"]] == ["Wellness Exam", "Illness / Sick Visit", "Euthanasia"]
    assert [o["value"] for o in data["doctors"]] == ["Dr. Jane Smith", "Dr. Alex Rivera", NO_PREFERENCE]
    assert data["needs_free_text_preference"] is True


def test_intro_events_then_next(client):
    sid = create_session(client)

    resp = client.post(
        f"/v1/intake/sessions/{sid}/events",
        json={
            "type": "contact",
            "email": "sam@example.com",
            "first_name": "Sam",
            "last_name": "Lee",
            "phone": "207-555-0100",
            "can_we_text": "Yes",
        },
    )
    assert resp.status_code == 200
    client.post(
        f"/v1/intake/sessions/{sid}/events",
        json={"type": "answer", "field": "have_used_services_before", "value": "No"},
    )

    resp = client.post(f"/v1/intake/sessions/{sid}/next")

    assert resp.status_code == 200
    data = resp.json()
    assert data["action"] == "moved"
    assert data["from_page"] == "intro"
    assert data["to_page"] == "new-client"
    assert data["session"]["has_previous"] is True

    resp = client.post(f"/v1/intake/sessions/{sid}/back")
    assert resp.json()["to_page"] == "intro"


def test_next_with_missing_answers_reports_errors(client):
    sid = create_session(client)
    data = client.post(f"/v1/intake/sessions/{sid}/next").json()
    assert data["action"] == "invalid"
    assert data["to_page"] is None
    assert "email" in data["session"]["validation_errors"]


def test_urgency_accepts_plain_hyphens(client):
    sid = create_session(client)
    resp = client.post(
        f"/v1/intake/sessions/{sid}/events",
        json={"type": "urgency", "urgency": "Soon - sometime this week"},
    )
    assert resp.status_code == 200

    resp = client.post(f"/v1/intake/sessions/{sid}/events", json={"type": "urgency", "urgency": "Whenever"})
    assert resp.status_code == 400


def test_rejected_events(client):
    sid = create_session(client)

    resp = client.post(f"/v1/intake/sessions/{sid}/events", json={"type": "answer", "field": "session_id", "value": "x"})
    assert resp.status_code == 400

    resp = client.post(f"/v1/intake/sessions/{sid}/events", json={"type": "teleport"})
    assert resp.status_code == 422

    resp = client.post(f"/v1/intake/sessions/{sid}/events", json={"type": "slot", "iso": "2024-06-03T09:00:00-04:00"})
    assert resp.status_code == 400


def test_unknown_session_is_404(client):
    assert client.get("/v1/intake/sessions/nope").status_code == 404
    assert client.post("/v1/intake/sessions/nope/next").status_code == 404
    assert client.post("/v1/intake/sessions/nope/back").status_code == 404
    resp = client.post("/v1/intake/sessions/nope/events", json={"type": "doctor", "text": "Dr. Jane Smith"})
    assert resp.status_code == 404


def test_signed_in_session_lands_on_existing_client(client, directory):
    directory.client_pets = (ExistingPet(id="p1", name="Rex", species="Dog"),)
    directory.alerts = {"p1": "Bites"}
    sid = create_session(client, is_authenticated=True)

    data = client.get(f"/v1/intake/sessions/{sid}", params={"wait": True}).json()

    assert data["current_page"] == "existing-client"
    assert data["is_existing_client"] is True
    assert data["client_pets"] == [{"id": "p1", "name": "Rex", "species": "Dog", "alerts": "Bites"}]
    assert [o["value"] for o in data["appointment_types"]] == ["Wellness", "Sick", "Recheck", "Euthanasia"]


def test_breeds_for_species(client):
    resp = client.get("/v1/intake/species/1/breeds")
    assert resp.status_code == 200
    assert resp.json() == [{"id": "10", "name": "Labrador Retriever"}, {"id": "11", "name": "Beagle"}]


def test_final_next_returns_success_then_the_session_is_gone(client, workflow, submission):
    sid = create_session(client)
    workflow.get(sid).session = new_client_session(
        current_page=Page.REQUEST_VISIT_CONTINUED,
        preferred_doctor_text=NO_PREFERENCE,
        time_preference_text="Weekday mornings",
    )

    resp = client.post(f"/v1/intake/sessions/{sid}/next", params={"wait": True})

    assert resp.status_code == 200
    data = resp.json()
    assert data["action"] == "moved"
    assert data["to_page"] == "success"
    assert data["session"]["current_page"] == "success"
    assert len(submission.payloads) == 1
    assert client.get(f"/v1/intake/sessions/{sid}").status_code == 404
