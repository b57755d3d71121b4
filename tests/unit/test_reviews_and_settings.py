from datetime import date

from mindfold.db import models


def test_reviews_average_into_therapist_rating(client, auth_headers, db_session, make_profile, make_therapist):
    therapist, _ = make_therapist()
    make_profile("first@example.com", full_name="First")
    make_profile("second@example.com", full_name=None)

    resp = client.post(
        "/reviews",
        json={"therapist_id": str(therapist.id), "rating": 5, "review_text": "Great"},
        headers=auth_headers("first@example.com"),
    )
    assert resp.status_code == 200
    client.post("/reviews", json={"therapist_id": str(therapist.id), "rating": 2}, headers=auth_headers("second@example.com"))
    db_session.refresh(therapist)
    assert therapist.rating == 3.5

    # A second review from the same user replaces the first
    client.post("/reviews", json={"therapist_id": str(therapist.id), "rating": 4}, headers=auth_headers("second@example.com"))
    db_session.refresh(therapist)
    assert therapist.rating == 4.5
    assert db_session.query(models.TherapistReview).count() == 2

    reviews = client.get(
        "/reviews", params={"therapist_id": str(therapist.id)}, headers=auth_headers("first@example.com")
    ).json()
    assert sorted(r["profiles"]["full_name"] for r in reviews) == ["Anonymous", "First"]


def test_review_validation(client, auth_headers, make_therapist):
    therapist, _ = make_therapist()
    headers = auth_headers("reviewer@example.com")
    assert client.post("/reviews", json={"therapist_id": str(therapist.id)}, headers=headers).status_code == 400
    resp = client.post("/reviews", json={"therapist_id": str(therapist.id), "rating": 6}, headers=headers)
    assert resp.json()["detail"] == "rating must be between 1 and 5"
    resp = client.post(
        "/reviews", json={"therapist_id": "00000000-0000-0000-0000-000000000000", "rating": 3}, headers=headers
    )
    assert resp.status_code == 404
    assert client.get("/reviews", headers=headers).status_code == 400


def test_settings_merge_profile_and_user_profile(client, auth_headers, make_profile):
    make_profile("settings@example.com", full_name="Sam")
    body = client.get("/user/settings", headers=auth_headers("settings@example.com")).json()
    assert body["email"] == "settings@example.com"
    assert body["full_name"] == "Sam"
    assert body["subscription_plan"] == "basic"
    assert body["allow_therapist_access"] is False


def test_settings_update(client, auth_headers, db_session, make_profile):
    user = make_profile("settings@example.com", full_name="Sam")
    headers = auth_headers("settings@example.com")
    resp = client.patch(
        "/user/settings", json={"full_name": " Samantha ", "allow_therapist_access": True}, headers=headers
    )
    assert resp.json() == {"success": True}
    db_session.expire_all()
    assert db_session.get(models.Profile, user.id).full_name == "Samantha"
    assert db_session.get(models.UserProfile, user.id).allow_therapist_access is True

    resp = client.patch("/user/settings", json={"password": "hunter2"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Password changes are managed by your sign-in provider"


def test_delete_account_removes_data_and_audits(
    client, auth_headers, db_session, make_profile, make_subscription, make_entry
):
    user = make_profile("leaving@example.com")
    user_id = user.id
    make_subscription(user)
    make_entry(user, date(2026, 10, 1))

    resp = client.delete("/user/settings", headers=auth_headers("leaving@example.com"))
    assert resp.json() == {"success": True}

    db_session.expire_all()
    assert db_session.get(models.Profile, user_id) is None
    assert db_session.get(models.UserProfile, user_id) is None
    assert db_session.query(models.JournalEntry).count() == 0
    assert db_session.query(models.UserSubscription).count() == 0
    audit_row = db_session.query(models.AuditLog).filter_by(action_type="account_delete").one()
    assert audit_row.target_id == user_id
    assert audit_row.actor_user_id is None
