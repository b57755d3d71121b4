import base64
import json
import uuid
from datetime import datetime, timezone

import pytest
from standardwebhooks.webhooks import Webhook

from mindfold.api.webhooks import WEBHOOK_PATH
from mindfold.db import models
from mindfold.db.repositories import billing as billing_repo
from mindfold.services import subscription_service

SECRET = "whsec_" + base64.b64encode(b"mindfold-webhook-test-secret-32b").decode()


@pytest.fixture(autouse=True)
def _webhook_secret(monkeypatch):
    monkeypatch.setenv("DODO_WEBHOOK_SECRET", SECRET)


def _deliver(client, event, msg_id=None, secret=SECRET):
    msg_id = msg_id or f"msg_{uuid.uuid4().hex}"
    payload = json.dumps(event)
    sent_at = datetime.now(timezone.utc)
    headers = {
        "webhook-id": msg_id,
        "webhook-timestamp": str(int(sent_at.timestamp())),
        "webhook-signature": Webhook(secret).sign(msg_id, sent_at, payload),
        "content-type": "application/json",
    }
    return client.post(WEBHOOK_PATH, content=payload, headers=headers)


def _subscription_active(user, plan_name="intermediate", subscription_id="sub_1"):
    return {
        "type": "subscription.active",
        "data": {
            "subscription_id": subscription_id,
            "customer": {"customer_id": "cus_1"},
            "recurring_pre_tax_amount": 1999,
            "currency": "USD",
            "previous_billing_date": "2026-10-19T00:00:00Z",
            "next_billing_date": "2026-11-19T00:00:00Z",
            "metadata": {"user_id": str(user.id), "plan_name": plan_name, "billing_cycle": "monthly"},
        },
    }


def test_subscription_active_creates_subscription(client, db_session, make_profile):
    user = make_profile("subscriber@example.com")
    resp = _deliver(client, _subscription_active(user))
    assert resp.status_code == 200
    assert resp.json() == {"received": True}

    subscription = db_session.query(models.UserSubscription).one()
    assert subscription.status == "active"
    assert subscription.plan_name == "intermediate"
    assert subscription.amount == 19.99
    assert subscription.dodo_subscription_id == "sub_1"
    user_profile = db_session.get(models.UserProfile, user.id)
    assert user_profile.subscription_plan == "intermediate"
    assert user_profile.dodo_customer_id == "cus_1"


def test_duplicate_delivery_is_acknowledged_once(client, db_session, make_profile):
    user = make_profile("subscriber@example.com")
    event = _subscription_active(user)
    assert _deliver(client, event, msg_id="msg_fixed").json() == {"received": True}
    assert _deliver(client, event, msg_id="msg_fixed").json() == {"received": True, "duplicate": True}
    assert db_session.query(models.UserSubscription).count() == 1
    assert db_session.query(models.WebhookEvent).count() == 1


def test_bad_signature_rejected(client, db_session):
    other_secret = "whsec_" + base64.b64encode(b"some-other-secret-value-0000000").decode()
    resp = _deliver(client, {"type": "payment.succeeded", "data": {}}, secret=other_secret)
    assert resp.status_code == 401
    assert db_session.query(models.WebhookEvent).count() == 0


def test_missing_secret_rejects_delivery(client, monkeypatch):
    monkeypatch.delenv("DODO_WEBHOOK_SECRET")
    resp = _deliver(client, {"type": "payment.succeeded", "data": {}})
    assert resp.status_code == 401


def test_missing_headers_rejected(client):
    resp = client.post(WEBHOOK_PATH, content="{}", headers={"webhook-id": "msg_1"})
    assert resp.status_code == 400


def test_payment_succeeded_records_payment_and_activates(client, db_session, make_profile):
    user = make_profile("payer@example.com")
    event = {
        "type": "payment.succeeded",
        "data": {
            "payment_id": "pay_1",
            "subscription_id": "sub_2",
            "total_amount": 999,
            "currency": "USD",
            "payment_method": "card",
            "customer": {"customer_id": "cus_9"},
            "metadata": {"user_id": str(user.id), "plan_name": "basic", "billing_cycle": "monthly"},
        },
    }
    assert _deliver(client, event).status_code == 200

    payment = db_session.query(models.PaymentHistory).one()
    assert payment.status == "succeeded"
    assert payment.amount == 9.99
    assert payment.user_id == user.id

    transaction = db_session.query(models.BillingTransaction).one()
    assert transaction.status == "completed"
    assert transaction.transaction_type == "subscription"
    assert transaction.payment_provider_id == "pay_1"

    subscription = db_session.query(models.UserSubscription).one()
    assert subscription.plan_name == "basic"
    assert subscription.dodo_subscription_id == "sub_2"


def test_payment_does_not_replace_existing_subscription(client, db_session, make_profile, make_subscription):
    user = make_profile("payer@example.com")
    make_subscription(user, plan_name="advanced")
    event = {
        "type": "payment.processing",
        "data": {
            "payment_id": "pay_2",
            "total_amount": 999,
            "metadata": {"user_id": str(user.id), "plan_name": "basic"},
        },
    }
    _deliver(client, event)
    assert db_session.query(models.UserSubscription).one().plan_name == "advanced"
    assert db_session.query(models.BillingTransaction).count() == 0


def test_payment_failed_records_failed_transaction(client, db_session, make_profile):
    user = make_profile("payer@example.com")
    event = {
        "type": "payment.failed",
        "data": {"payment_id": "pay_3", "total_amount": 500, "metadata": {"user_id": str(user.id)}},
    }
    _deliver(client, event)
    assert db_session.query(models.PaymentHistory).one().status == "failed"
    assert db_session.query(models.BillingTransaction).one().status == "failed"


def test_lifecycle_events_update_status(client, db_session, make_profile):
    user = make_profile("subscriber@example.com")
    _deliver(client, _subscription_active(user))

    _deliver(client, {"type": "subscription.on_hold", "data": {"subscription_id": "sub_1"}})
    assert db_session.query(models.UserSubscription).one().status == "on_hold"

    _deliver(client, {
        "type": "subscription.renewed",
        "data": {
            "subscription_id": "sub_1",
            "previous_billing_date": "2026-11-19T00:00:00Z",
            "next_billing_date": "2026-12-19T00:00:00Z",
        },
    })
    row = db_session.query(models.UserSubscription).one()
    assert row.status == "active"
    assert row.current_period_end.date().isoformat() == "2026-12-19"

    _deliver(client, {
        "type": "subscription.plan_changed",
        "data": {"subscription_id": "sub_1", "recurring_pre_tax_amount": 2999, "metadata": {"plan_name": "advanced"}},
    })
    row = db_session.query(models.UserSubscription).one()
    assert row.plan_name == "advanced"
    assert row.amount == 29.99
    assert db_session.get(models.UserProfile, user.id).subscription_plan == "advanced"

    _deliver(client, {"type": "subscription.cancelled", "data": {"subscription_id": "sub_1"}})
    row = db_session.query(models.UserSubscription).one()
    assert row.status == "cancelled"
    assert row.cancel_at_period_end is True
    assert row.cancelled_at is not None


def test_unknown_event_type_is_acknowledged(client, db_session):
    resp = _deliver(client, {"type": "dispute.opened", "data": {}})
    assert resp.json() == {"received": True}
    assert db_session.query(models.WebhookEvent).one().event_type == "dispute.opened"


def test_handler_failure_rolls_back_delivery(db_session, monkeypatch):
    def _explode(db, data):
        raise RuntimeError("boom")

    monkeypatch.setitem(subscription_service.EVENT_HANDLERS, "subscription.active", _explode)
    assert subscription_service.process_webhook_event(db_session, "msg_boom", {"type": "subscription.active"}) is True
    # Rolled back, so a retry of the same delivery is applied again
    assert db_session.query(models.WebhookEvent).count() == 0


def _payment_succeeded(user, subscription_id, payment_id="pay_seq"):
    return {
        "type": "payment.succeeded",
        "data": {
            "payment_id": payment_id,
            "subscription_id": subscription_id,
            "total_amount": 1999,
            "currency": "USD",
            "metadata": {"user_id": str(user.id), "plan_name": "intermediate", "billing_cycle": "monthly"},
        },
    }


def _statuses(db_session, user):
    db_session.expire_all()
    rows = db_session.query(models.UserSubscription).filter_by(user_id=user.id).all()
    return sorted(row.status for row in rows)


def test_checkout_event_sequence_keeps_one_active_subscription(client, db_session, make_profile):
    user = make_profile("subscriber@example.com")
    _deliver(client, _payment_succeeded(user, "sub_X"))
    _deliver(client, _subscription_active(user, subscription_id="sub_X"))
    assert _statuses(db_session, user) == ["active", "superseded"]

    _deliver(client, {
        "type": "subscription.renewed",
        "data": {
            "subscription_id": "sub_X",
            "previous_billing_date": "2026-11-19T00:00:00Z",
            "next_billing_date": "2026-12-19T00:00:00Z",
        },
    })
    assert _statuses(db_session, user) == ["active", "superseded"]

    _deliver(client, {"type": "subscription.updated", "data": {"subscription_id": "sub_X", "status": "active"}})
    assert _statuses(db_session, user) == ["active", "superseded"]

    active = billing_repo.get_active_subscription(db_session, user.id)
    assert active.current_period_end.date().isoformat() == "2026-12-19"
    assert active.amount == 19.99


def test_renewing_an_older_provider_subscription_supersedes_the_newer_one(client, db_session, make_profile):
    user = make_profile("subscriber@example.com")
    _deliver(client, _subscription_active(user, plan_name="basic", subscription_id="sub_old"))
    _deliver(client, _subscription_active(user, plan_name="advanced", subscription_id="sub_new"))

    _deliver(client, {"type": "subscription.renewed", "data": {"subscription_id": "sub_old"}})
    assert _statuses(db_session, user) == ["active", "superseded"]
    assert billing_repo.get_active_subscription(db_session, user.id).dodo_subscription_id == "sub_old"


def test_subscription_updated_applies_status_period_and_plan(client, db_session, make_profile):
    user = make_profile("subscriber@example.com")
    _deliver(client, _subscription_active(user))

    _deliver(client, {
        "type": "subscription.updated",
        "data": {
            "subscription_id": "sub_1",
            "status": "on_hold",
            "previous_billing_date": "2026-10-20T00:00:00Z",
            "next_billing_date": "2026-11-20T00:00:00Z",
            "metadata": {"plan_name": "advanced"},
        },
    })
    db_session.expire_all()
    row = db_session.query(models.UserSubscription).one()
    assert row.status == "on_hold"
    assert row.current_period_start.date().isoformat() == "2026-10-20"
    assert row.current_period_end.date().isoformat() == "2026-11-20"
    assert row.plan_name == "advanced"


@pytest.mark.parametrize("event_type,expected", [
    ("subscription.expired", "expired"),
    ("subscription.failed", "failed"),
])
def test_terminal_subscription_events(client, db_session, make_profile, event_type, expected):
    user = make_profile("subscriber@example.com")
    _deliver(client, _subscription_active(user))
    _deliver(client, {"type": event_type, "data": {"subscription_id": "sub_1"}})
    db_session.expire_all()
    row = db_session.query(models.UserSubscription).one()
    assert row.status == expected
    assert row.cancelled_at is None
    assert billing_repo.get_active_subscription(db_session, user.id) is None


def test_events_for_unknown_provider_subscription_are_ignored(client, db_session):
    resp = _deliver(client, {"type": "subscription.renewed", "data": {"subscription_id": "sub_ghost"}})
    assert resp.json() == {"received": True}
    assert db_session.query(models.UserSubscription).count() == 0


def test_payment_cancelled_records_payment_only(client, db_session, make_profile):
    user = make_profile("payer@example.com")
    _deliver(client, {
        "type": "payment.cancelled",
        "data": {"payment_id": "pay_4", "total_amount": 1999, "metadata": {"user_id": str(user.id)}},
    })
    payment = db_session.query(models.PaymentHistory).one()
    assert payment.status == "cancelled"
    assert payment.amount == 19.99
    assert db_session.query(models.BillingTransaction).count() == 0
    assert db_session.query(models.UserSubscription).count() == 0


def test_non_utf8_body_rejected(client, db_session):
    headers = {
        "webhook-id": "msg_binary",
        "webhook-timestamp": str(int(datetime.now(timezone.utc).timestamp())),
        "webhook-signature": "v1,AAAA",
    }
    resp = client.post(WEBHOOK_PATH, content=b"\xff\xfe\xfd", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid webhook payload encoding"}
    assert db_session.query(models.WebhookEvent).count() == 0


def test_conflicting_delivery_id_reports_duplicate(db_session):
    assert billing_repo.record_webhook_delivery(db_session, "msg_race", "payment.succeeded") is True
    db_session.commit()
    # A second writer racing on the same id hits the unique constraint
    assert billing_repo.record_webhook_delivery(db_session, "msg_race", "payment.succeeded") is False
    assert db_session.query(models.WebhookEvent).count() == 1
