import pytest

from mindfold.db import models


@pytest.fixture
def care(make_profile, make_plan, make_subscription, make_therapist, make_relationship):
    make_plan(therapist_sessions_per_week=1)
    user = make_profile("patient@example.com", full_name="Pat")
    make_subscription(user)
    therapist, service = make_therapist()
    relationship = make_relationship(therapist, user, service)
    return user, therapist, relationship


def _request_session(client, auth_headers, therapist, relationship):
    return client.post(
        "/sessions",
        json={"relationship_id": str(relationship.id), "therapist_id": str(therapist.id), "user_notes": "Evenings"},
        headers=auth_headers("patient@example.com"),
    )


def test_request_session_consumes_weekly_quota(client, auth_headers, care):
    _user, therapist, relationship = care
    first = _request_session(client, auth_headers, therapist, relationship)
    assert first.status_code == 200
    assert first.json()["status"] == "requested"
    assert first.json()["user_notes"] == "Evenings"

    second = _request_session(client, auth_headers, therapist, relationship)
    assert second.status_code == 403
    assert second.json() == {"success": False, "limitExceeded": True, "error": "Weekly session limit reached"}


def test_request_session_requires_relationship(client, auth_headers, care, make_therapist):
    _user, _therapist, relationship = care
    stranger, _ = make_therapist("stranger@example.com")
    headers = auth_headers("patient@example.com")
    resp = client.post(
        "/sessions",
        json={"relationship_id": str(relationship.id), "therapist_id": str(stranger.id)},
        headers=headers,
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "No active relationship with this therapist"
    assert client.post("/sessions", json={}, headers=headers).status_code == 400


def test_therapist_updates_session_and_adds_notes(client, auth_headers, care, make_therapist):
    user, therapist, relationship = care
    session_id = _request_session(client, auth_headers, therapist, relationship).json()["id"]
    headers = auth_headers("therapist@example.com")

    resp = client.patch(
        "/sessions",
        json={
            "session_id": session_id,
            "status": "scheduled",
            "meeting_link": "https://meet.example/abc",
            "scheduled_date": "2026-10-21T18:00:00Z",
        },
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "scheduled"
    assert resp.json()["meeting_link"] == "https://meet.example/abc"

    bad = client.patch("/sessions", json={"session_id": session_id, "status": "teleported"}, headers=headers)
    assert bad.status_code == 400

    make_therapist("other@example.com")
    other = client.patch(
        "/sessions", json={"session_id": session_id, "status": "cancelled"}, headers=auth_headers("other@example.com")
    )
    assert other.status_code == 403

    note = client.post(
        "/sessions/notes",
        json={"session_id": session_id, "summary": "Good progress", "exercises": "Breathing"},
        headers=headers,
    )
    assert note.status_code == 200
    assert note.json()["user_id"] == str(user.id)

    sessions = client.get("/sessions", headers=auth_headers("patient@example.com")).json()
    assert sessions[0]["notes"][0]["summary"] == "Good progress"
    assert len(client.get("/sessions", headers=headers).json()) == 1


def test_patient_cannot_update_sessions(client, auth_headers, care):
    _user, therapist, relationship = care
    session_id = _request_session(client, auth_headers, therapist, relationship).json()["id"]
    resp = client.patch(
        "/sessions", json={"session_id": session_id, "status": "completed"}, headers=auth_headers("patient@example.com")
    )
    assert resp.status_code == 403


def test_messages_between_participants(client, auth_headers, care):
    user, therapist, relationship = care
    resp = client.post(
        "/messages",
        json={"relationship_id": str(relationship.id), "receiver_id": str(therapist.id), "content": " Hi doctor "},
        headers=auth_headers("patient@example.com"),
    )
    assert resp.status_code == 200
    assert resp.json()["content"] == "Hi doctor"

    client.post(
        "/messages",
        json={"relationship_id": str(relationship.id), "receiver_id": str(user.id), "content": "Hello Pat"},
        headers=auth_headers("therapist@example.com"),
    )
    thread = client.get(
        "/messages", params={"relationship_id": str(relationship.id)}, headers=auth_headers("therapist@example.com")
    ).json()
    assert len(thread) == 2

    outsider = client.get(
        "/messages", params={"relationship_id": str(relationship.id)}, headers=auth_headers("outsider@example.com")
    )
    assert outsider.status_code == 403


def test_message_validation(client, auth_headers, care):
    user, _therapist, relationship = care
    headers = auth_headers("patient@example.com")
    assert client.post("/messages", json={"relationship_id": str(relationship.id)}, headers=headers).status_code == 400
    to_self = client.post(
        "/messages",
        json={"relationship_id": str(relationship.id), "receiver_id": str(user.id), "content": "note to self"},
        headers=headers,
    )
    assert to_self.status_code == 400
    assert client.get("/messages", headers=headers).status_code == 400


def test_prescriptions_flow(client, auth_headers, care, make_profile):
    user, _therapist, relationship = care
    therapist_headers = auth_headers("therapist@example.com")
    payload = {
        "user_id": str(user.id),
        "relationship_id": str(relationship.id),
        "type": "preventive_measure",
        "title": "Sleep hygiene",
        "content": "No screens after 10pm",
    }
    created = client.post("/prescriptions", json=payload, headers=therapist_headers)
    assert created.status_code == 200
    assert created.json()["type"] == "preventive_measure"

    assert client.post("/prescriptions", json={**payload, "type": "potion"}, headers=therapist_headers).status_code == 400
    assert client.post("/prescriptions", json={**payload, "title": " "}, headers=therapist_headers).status_code == 400

    own = client.get("/prescriptions", headers=auth_headers("patient@example.com")).json()
    assert [p["title"] for p in own] == ["Sleep hygiene"]

    by_therapist = client.get("/prescriptions", params={"user_id": str(user.id)}, headers=therapist_headers).json()
    assert len(by_therapist) == 1

    make_profile("nosy@example.com")
    nosy = client.get("/prescriptions", params={"user_id": str(user.id)}, headers=auth_headers("nosy@example.com"))
    assert nosy.status_code == 403


def test_prescription_requires_active_relationship(client, auth_headers, care, db_session, make_therapist):
    user, _therapist, relationship = care
    make_therapist("other@example.com")
    resp = client.post(
        "/prescriptions",
        json={
            "user_id": str(user.id),
            "relationship_id": str(relationship.id),
            "type": "prescription",
            "title": "Rest",
            "content": "Take a day off",
        },
        headers=auth_headers("other@example.com"),
    )
    assert resp.status_code == 403
    assert db_session.query(models.Prescription).count() == 0
