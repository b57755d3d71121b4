from datetime import timedelta

from mindfold.api.chat import NO_ENTRIES_REPLY
from mindfold.db import models
from mindfold.services.ai_service import FALLBACK_ANSWER, JournalAIService


def _subscribed_user(make_profile, make_plan, make_subscription, **limits):
    make_plan(**limits)
    user = make_profile("chatter@example.com")
    make_subscription(user)
    return user


def test_chat_without_entries_returns_guidance(client, auth_headers, make_profile, make_plan, make_subscription):
    _subscribed_user(make_profile, make_plan, make_subscription)
    resp = client.post("/chat", json={"message": "How have I been?"}, headers=auth_headers("chatter@example.com"))
    assert resp.status_code == 200
    assert resp.json()["response"] == NO_ENTRIES_REPLY


def test_chat_answers_from_recent_entries(
    client, auth_headers, monkeypatch, make_profile, make_plan, make_subscription, make_entry
):
    user = _subscribed_user(make_profile, make_plan, make_subscription)
    today = models.now_utc().date()
    make_entry(user, today - timedelta(days=2), content="Felt calm after a walk")
    make_entry(user, today - timedelta(days=40), content="Old entry")

    seen = {}

    def _generate(self, prompt, config=None):
        seen["prompt"] = prompt
        return "  You have been calmer lately.  "

    monkeypatch.setenv("LLM_API_KEY", "test-key")
    monkeypatch.setattr(JournalAIService, "_generate", _generate)
    resp = client.post(
        "/chat",
        json={"message": "How am I doing?", "chat_mode": "quick_reflect"},
        headers=auth_headers("chatter@example.com"),
    )
    assert resp.status_code == 200
    assert resp.json()["response"] == "You have been calmer lately."
    assert "Felt calm after a walk" in seen["prompt"]
    assert "Old entry" not in seen["prompt"]


def test_chat_without_model_returns_fallback_answer(
    client, auth_headers, make_profile, make_plan, make_subscription, make_entry
):
    user = _subscribed_user(make_profile, make_plan, make_subscription)
    make_entry(user, models.now_utc().date())
    resp = client.post("/chat", json={"message": "Anything?"}, headers=auth_headers("chatter@example.com"))
    assert resp.json()["response"] == FALLBACK_ANSWER


def test_chat_quota_exhausted_returns_403(client, auth_headers, make_profile, make_plan, make_subscription):
    _subscribed_user(make_profile, make_plan, make_subscription, quick_reflect_limit=1)
    headers = auth_headers("chatter@example.com")
    assert client.post("/chat", json={"message": "one"}, headers=headers).status_code == 200

    resp = client.post("/chat", json={"message": "two"}, headers=headers)
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "limitExceeded": True, "error": "Usage limit reached"}


def test_chat_without_subscription_is_refused(client, auth_headers):
    resp = client.post("/chat", json={"message": "hello"}, headers=auth_headers("nosub@example.com"))
    assert resp.status_code == 403
    assert resp.json()["limitExceeded"] is True


def test_chat_allowed_when_limits_not_enforced(client, auth_headers, monkeypatch):
    from mindfold.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("USAGE_LIMITS_ENFORCED", "false")
    refresh_feature_flag_cache()
    resp = client.post("/chat", json={"message": "hello"}, headers=auth_headers("nosub@example.com"))
    assert resp.status_code == 200


def test_conversation_lifecycle(client, auth_headers, make_profile, make_plan, make_subscription, db_session):
    _subscribed_user(make_profile, make_plan, make_subscription)
    headers = auth_headers("chatter@example.com")
    long_message = "x" * 60
    conversation_id = client.post(
        "/chat", json={"message": long_message, "chat_mode": "deep_reflect"}, headers=headers
    ).json()["conversation_id"]

    conversations = client.get("/chat", headers=headers).json()
    assert len(conversations) == 1
    assert conversations[0]["title"] == "x" * 50 + "..."
    assert conversations[0]["chat_mode"] == "deep_reflect"

    client.post("/chat", json={"message": "follow up", "conversation_id": conversation_id}, headers=headers)
    messages = client.get("/chat/messages", params={"conversation_id": conversation_id}, headers=headers).json()
    assert [m["role"] for m in messages].count("user") == 2
    assert len(messages) == 4

    usage = db_session.query(models.UsageTracking).one()
    assert usage.deep_reflect_used == 2
    assert usage.quick_reflect_used == 0

    resp = client.request("DELETE", "/chat", json={"conversation_id": conversation_id}, headers=headers)
    assert resp.json() == {"success": True}
    assert client.get("/chat", headers=headers).json() == []


def test_chat_validation(client, auth_headers):
    headers = auth_headers("chatter@example.com")
    assert client.post("/chat", json={"message": " "}, headers=headers).status_code == 400
    assert client.post("/chat", json={"message": "hi", "chat_mode": "rambling"}, headers=headers).status_code == 400
    assert client.get("/chat/messages", headers=headers).status_code == 400
    assert client.get("/chat/messages", params={"conversation_id": "nope"}, headers=headers).status_code == 400
    resp = client.request("DELETE", "/chat", json={}, headers=headers)
    assert resp.status_code == 400
    assert client.delete("/chat", headers=headers).status_code == 400
    missing = client.request(
        "DELETE", "/chat", json={"conversation_id": "00000000-0000-0000-0000-000000000000"}, headers=headers
    )
    assert missing.status_code == 404
    assert client.request("DELETE", "/chat", json={"conversation_id": "nope"}, headers=headers).status_code == 422
