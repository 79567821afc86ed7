import asyncio
import hashlib
import hmac
import json
import time

import pytest
import stripe

from models import AnalyticsEvent
from services import crud, stripe_service
from tests.conftest import user_by_email

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def stripe_on(monkeypatch):
    monkeypatch.setattr(stripe, "api_key", "sk_test_123")
    monkeypatch.setattr(stripe_service, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture
def stripe_calls(monkeypatch, stripe_on):
    calls = {}

    def customer_create(**kwargs):
        calls["customer"] = kwargs
        return {"id": "cus_123"}

    def intent_create(**kwargs):
        calls["intent"] = kwargs
        return {"id": "pi_123", "client_secret": "pi_123_secret_abc"}

    def intent_retrieve(intent_id, **kwargs):
        calls["retrieve"] = intent_id
        return {"id": intent_id, "client_secret": f"{intent_id}_secret_again"}

    monkeypatch.setattr(stripe.Customer, "create", customer_create)
    monkeypatch.setattr(stripe.PaymentIntent, "create", intent_create)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", intent_retrieve)
    return calls


def _signed(payload: dict):
    body = json.dumps(payload)
    ts = int(time.time())
    sig = hmac.new(WEBHOOK_SECRET.encode(), f"{ts}.{body}".encode(), hashlib.sha256).hexdigest()
    return body, {"stripe-signature": f"t={ts},v1={sig}", "Content-Type": "application/json"}


def _event(event_type, obj):
    return {"id": "evt_1", "object": "event", "type": event_type, "data": {"object": obj}}


def test_subscription_needs_stripe_configured(client, auth, monkeypatch):
    monkeypatch.setattr(stripe, "api_key", None)
    r = client.post("/api/create-subscription", headers=auth)
    assert r.status_code == 503, f"status={r.status_code} body={r.text}"
    assert r.json() == {"message": "Stripe is not configured"}


def test_create_subscription_intent(client, auth, stripe_calls, db):
    r = client.post("/api/create-subscription", headers=auth)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json() == {"subscriptionId": "pi_123", "clientSecret": "pi_123_secret_abc"}

    user = user_by_email(db)
    assert stripe_calls["customer"]["email"] == "alice@example.com"
    assert stripe_calls["intent"]["amount"] == 2900
    assert stripe_calls["intent"]["currency"] == "usd"
    assert stripe_calls["intent"]["customer"] == "cus_123"
    assert stripe_calls["intent"]["setup_future_usage"] == "off_session"
    assert stripe_calls["intent"]["metadata"] == {"type": "subscription", "userId": str(user.id)}

    assert user.stripe_customer_id == "cus_123"
    assert user.stripe_subscription_id == "pi_123"
    assert user.subscription_status == "active"


def test_existing_intent_is_reused(client, auth, stripe_calls, db):
    crud.update_user_stripe_info(db, user_by_email(db), "cus_old", "pi_old")

    r = client.post("/api/create-subscription", headers=auth)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json() == {"subscriptionId": "pi_old", "clientSecret": "pi_old_secret_again"}
    assert stripe_calls["retrieve"] == "pi_old"
    assert "intent" not in stripe_calls


def test_stripe_error_is_client_error(client, auth, stripe_on, monkeypatch):
    def fail(**kwargs):
        raise stripe.StripeError("card network down")

    monkeypatch.setattr(stripe.Customer, "create", fail)
    r = client.post("/api/create-subscription", headers=auth)
    assert r.status_code == 400, f"status={r.status_code} body={r.text}"


def test_webhook_without_secret_is_unavailable(client):
    r = client.post("/api/webhook/stripe", content=b"{}", headers={"stripe-signature": "t=1,v1=x"})
    assert r.status_code == 503, f"status={r.status_code} body={r.text}"


def test_webhook_rejects_bad_signature(client, stripe_on):
    body = json.dumps(_event("invoice.payment_succeeded", {"customer": "cus_1"}))
    r = client.post("/api/webhook/stripe", content=body,
                    headers={"stripe-signature": f"t={int(time.time())},v1=deadbeef"})
    assert r.status_code == 400, f"status={r.status_code} body={r.text}"
    assert r.json() == {"message": "Invalid Stripe signature"}


def test_signed_payment_webhook_activates_pro(client, auth, stripe_on, db):
    user = user_by_email(db)
    body, headers = _signed(_event("payment_intent.succeeded", {
        "id": "pi_777",
        "object": "payment_intent",
        "customer": "cus_777",
        "metadata": {"type": "subscription", "userId": str(user.id)},
    }))

    r = client.post("/api/webhook/stripe", content=body, headers=headers)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json() == {"received": True, "applied": True}

    user = user_by_email(db)
    assert user.subscription_status == "active"
    assert user.api_credits == 3000
    assert user.stripe_subscription_id == "pi_777"

    event = db.query(AnalyticsEvent).filter(AnalyticsEvent.event_type == "subscription_updated").one()
    assert event.event_data["stripeEvent"] == "payment_intent.succeeded"


def test_webhook_db_work_runs_off_the_event_loop(client, stripe_on, monkeypatch):
    seen = {}

    def fake_handle(db, event):
        try:
            asyncio.get_running_loop()
            seen["on_loop"] = True
        except RuntimeError:
            seen["on_loop"] = False
        return {"received": True, "applied": False}

    monkeypatch.setattr(stripe_service, "handle_event", fake_handle)
    body, headers = _signed(_event("invoice.payment_succeeded", {"customer": "cus_1"}))
    r = client.post("/api/webhook/stripe", content=body, headers=headers)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert seen == {"on_loop": False}


def test_unknown_event_is_acknowledged(client, stripe_on):
    body, headers = _signed(_event("charge.refunded", {"id": "ch_1"}))
    r = client.post("/api/webhook/stripe", content=body, headers=headers)
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    assert r.json() == {"received": True, "applied": False}


def test_subscription_updated_to_past_due_downgrades(client, auth, db):
    user = user_by_email(db)
    crud.update_user_stripe_info(db, user, "cus_1", "sub_1")

    result = stripe_service.handle_event(db, _event("customer.subscription.updated", {
        "id": "sub_1", "customer": "cus_1", "status": "past_due",
    }))
    assert result["applied"] is True
    assert user_by_email(db).subscription_status == "free"

    stripe_service.handle_event(db, _event("customer.subscription.updated", {
        "id": "sub_1", "customer": "cus_1", "status": "trialing",
    }))
    assert user_by_email(db).subscription_status == "active"


def test_subscription_deleted_caps_credits(client, auth, db):
    user = user_by_email(db)
    crud.update_user_stripe_info(db, user, "cus_2", "sub_2")
    crud.update_user_api_credits(db, user, 2800)

    stripe_service.handle_event(db, _event("customer.subscription.deleted", {"id": "sub_2", "customer": "cus_2"}))
    user = user_by_email(db)
    assert user.subscription_status == "free"
    assert user.stripe_subscription_id is None
    assert user.api_credits == 100


def test_invoice_paid_resets_monthly_credits(client, auth, db):
    user = user_by_email(db)
    crud.update_user_stripe_info(db, user, "cus_3", "sub_3")
    crud.update_user_api_credits(db, user, 12)

    stripe_service.handle_event(db, _event("invoice.payment_succeeded", {"customer": "cus_3", "subscription": "sub_3"}))
    assert user_by_email(db).api_credits == 3000


def test_non_subscription_payment_is_ignored(client, auth, db):
    user = user_by_email(db)
    result = stripe_service.handle_event(db, _event("payment_intent.succeeded", {
        "id": "pi_1", "customer": "cus_x", "metadata": {"type": "one_off", "userId": str(user.id)},
    }))
    assert result == {"received": True, "applied": False}
    assert user_by_email(db).api_credits == 100


def test_event_for_unknown_customer_is_ignored(client, db):
    result = stripe_service.handle_event(db, _event("invoice.payment_succeeded", {"customer": "cus_nobody"}))
    assert result == {"received": True, "applied": False}
