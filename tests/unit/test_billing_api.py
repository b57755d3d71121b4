import requests

from mindfold.db import models
from mindfold.services import dodo_client


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)

    def json(self):
        return self._payload


def test_plans_are_public_and_ordered(client, make_plan):
    make_plan("advanced", price_monthly=29.99)
    make_plan("basic", price_monthly=9.99)
    make_plan("legacy", price_monthly=1.0, is_active=False)
    resp = client.get("/plans")
    assert resp.status_code == 200
    assert [p["plan_name"] for p in resp.json()] == ["basic", "advanced"]


def test_subscription_status_without_subscription(client, auth_headers):
    resp = client.get("/subscription", headers=auth_headers("nosub@example.com"))
    assert resp.json() == {"hasSubscription": False, "subscription": None, "usage": None}


def test_activation_supersedes_previous_subscription(client, auth_headers, db_session, make_plan):
    make_plan("basic")
    make_plan("intermediate", price_monthly=19.99, price_yearly=199.99, quick_reflect_limit=25)
    headers = auth_headers("buyer@example.com")

    first = client.post("/subscription/activate", json={"planName": "basic", "billingCycle": "monthly"}, headers=headers)
    assert first.json() == {"success": True, "plan": "basic", "status": "active"}
    second = client.post(
        "/subscription/activate", json={"planName": "intermediate", "billingCycle": "yearly"}, headers=headers
    )
    assert second.status_code == 200

    rows = db_session.query(models.UserSubscription).order_by(models.UserSubscription.created_at).all()
    assert [r.status for r in rows] == ["superseded", "active"]
    assert rows[1].amount == 199.99
    assert rows[1].billing_cycle == "yearly"

    buyer = db_session.query(models.Profile).filter_by(email="buyer@example.com").one()
    assert db_session.get(models.UserProfile, buyer.id).subscription_plan == "intermediate"

    status = client.get("/subscription", headers=headers).json()
    assert status["hasSubscription"] is True
    assert status["plan"]["plan_name"] == "intermediate"
    assert status["limits"]["quick_reflect"]["limit"] == 25

    logged = db_session.query(models.AuditLog).filter_by(action_type="subscription_activate").count()
    assert logged == 2


def test_activation_validation(client, auth_headers, make_plan):
    make_plan("basic")
    headers = auth_headers("buyer@example.com")
    resp = client.post("/subscription/activate", json={"planName": "basic", "billingCycle": "weekly"}, headers=headers)
    assert resp.status_code == 400
    resp = client.post("/subscription/activate", json={"planName": "platinum"}, headers=headers)
    assert resp.status_code == 404


def test_checkout_validation(client, auth_headers, make_plan):
    make_plan("basic")
    headers = auth_headers("buyer@example.com")
    assert client.post("/checkout", json={"planId": "basic"}, headers=headers).status_code == 400
    assert client.post("/checkout", json={"planId": "gold", "billingCycle": "monthly"}, headers=headers).status_code == 404

    resp = client.post("/checkout", json={"planId": "basic", "billingCycle": "monthly"}, headers=headers)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "No Dodo product configured for this plan"


def test_checkout_creates_hosted_session(client, auth_headers, make_plan, monkeypatch):
    make_plan("basic", dodo_product_id="pdt_basic")
    monkeypatch.setenv("DODO_PAYMENTS_API_KEY", "sk_test")
    monkeypatch.setenv("DODO_PAYMENTS_ENVIRONMENT", "test_mode")
    calls = []

    def _post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers})
        return _FakeResponse({"session_id": "cks_1", "checkout_url": "https://checkout.example/cks_1"})

    monkeypatch.setattr(dodo_client.requests, "post", _post)
    resp = client.post(
        "/checkout",
        json={"planId": "basic", "billingCycle": "yearly"},
        headers=auth_headers("buyer@example.com", "Buyer"),
    )
    assert resp.status_code == 200
    assert resp.json() == {"checkout_url": "https://checkout.example/cks_1"}

    sent = calls[0]
    assert sent["url"] == "https://test.dodopayments.com/checkouts"
    assert sent["headers"]["Authorization"] == "Bearer sk_test"
    assert sent["json"]["product_cart"] == [{"product_id": "pdt_basic", "quantity": 1}]
    assert sent["json"]["metadata"]["plan_name"] == "basic"
    assert sent["json"]["metadata"]["billing_cycle"] == "yearly"
    assert sent["json"]["return_url"] == "http://localhost:3000/dashboard/billing?session=success"


def test_checkout_provider_failure_is_502(client, auth_headers, make_plan, monkeypatch):
    make_plan("basic", dodo_product_id="pdt_basic")

    def _refused(url, json=None, headers=None, timeout=None):
        return _FakeResponse({"error": "bad key"}, status_code=401)

    monkeypatch.setattr(dodo_client.requests, "post", _refused)
    resp = client.post("/checkout", json={"planId": "basic", "billingCycle": "monthly"}, headers=auth_headers("b@example.com"))
    assert resp.status_code == 502

    def _unreachable(url, json=None, headers=None, timeout=None):
        raise requests.ConnectionError("no route")

    monkeypatch.setattr(dodo_client.requests, "post", _unreachable)
    resp = client.post("/checkout", json={"planId": "basic", "billingCycle": "monthly"}, headers=auth_headers("b@example.com"))
    assert resp.status_code == 502


def test_billing_history_lists_own_payments(client, auth_headers, make_profile, db_session):
    user = make_profile("payer@example.com")
    other = make_profile("other@example.com")
    db_session.add_all([
        models.PaymentHistory(user_id=user.id, dodo_payment_id="pay_1", amount=9.99, currency="USD", status="succeeded"),
        models.PaymentHistory(user_id=other.id, dodo_payment_id="pay_2", amount=19.99, currency="USD", status="succeeded"),
    ])
    db_session.commit()
    resp = client.get("/billing/history", headers=auth_headers("payer@example.com"))
    assert [p["dodo_payment_id"] for p in resp.json()] == ["pay_1"]
