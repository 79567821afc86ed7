"""
Stripe billing: the monthly subscription PaymentIntent and webhook event dispatch.

Each webhook kind has its own handler returning a SubscriptionTransition; unknown kinds map to
no handler and are acknowledged without touching the database.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import stripe
from sqlalchemy.orm import Session

from errors import BillingError, BillingNotConfiguredError
from models import User
from services import crud
from settings import (
    FREE_PLAN_CREDITS,
    PRO_PLAN_CREDITS,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    SUBSCRIPTION_CURRENCY,
    SUBSCRIPTION_PRICE_CENTS,
)

logger = logging.getLogger(__name__)

stripe.api_key = STRIPE_SECRET_KEY or None


def _field(obj: Any, key: str, default: Any = None) -> Any:
    """Item lookup that works for StripeObject and plain dicts alike."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, AttributeError):
        return default
    return default if value is None else value


def _require_secret_key() -> None:
    if not stripe.api_key:
        raise BillingNotConfiguredError("Stripe is not configured")


# ----------------- subscription intent -----------------

def _existing_intent(stored_id: str) -> Optional[Dict[str, Optional[str]]]:
    if stored_id.startswith("sub_"):
        subscription = stripe.Subscription.retrieve(stored_id, expand=["latest_invoice.payment_intent"])
        invoice = _field(subscription, "latest_invoice")
        intent = _field(invoice, "payment_intent")
        return {"subscription_id": stored_id, "client_secret": _field(intent, "client_secret")}
    if stored_id.startswith("pi_"):
        intent = stripe.PaymentIntent.retrieve(stored_id)
        return {"subscription_id": stored_id, "client_secret": _field(intent, "client_secret")}
    return None


def create_subscription_intent(db: Session, user: User) -> Dict[str, Optional[str]]:
    _require_secret_key()
    if not user.email:
        raise BillingError("No user email on file")

    try:
        if user.stripe_subscription_id:
            existing = _existing_intent(user.stripe_subscription_id)
            if existing:
                logger.info("[billing] reusing %s for user %s", user.stripe_subscription_id, user.id)
                return existing

        customer_id = user.stripe_customer_id
        if not customer_id:
            customer = stripe.Customer.create(email=user.email, name=user.full_name or user.email)
            customer_id = _field(customer, "id")

        intent = stripe.PaymentIntent.create(
            amount=SUBSCRIPTION_PRICE_CENTS,
            currency=SUBSCRIPTION_CURRENCY,
            customer=customer_id,
            setup_future_usage="off_session",
            metadata={"type": "subscription", "userId": str(user.id)},
        )
    except stripe.StripeError as e:
        logger.error("[billing] stripe error for user %s: %s", user.id, e)
        raise BillingError(getattr(e, "user_message", None) or str(e)) from e

    intent_id = _field(intent, "id")
    crud.update_user_stripe_info(db, user, customer_id, intent_id)
    logger.info("[billing] created payment intent %s for user %s", intent_id, user.id)
    return {"subscription_id": intent_id, "client_secret": _field(intent, "client_secret")}


# ----------------- webhooks -----------------

def construct_event(payload: bytes, signature: Optional[str]):
    if not STRIPE_WEBHOOK_SECRET:
        raise BillingNotConfiguredError("Stripe webhook secret is not configured")
    try:
        return stripe.Webhook.construct_event(payload, signature or "", STRIPE_WEBHOOK_SECRET)
    except stripe.SignatureVerificationError as e:
        raise BillingError("Invalid Stripe signature") from e
    except ValueError as e:
        raise BillingError("Invalid payload") from e


@dataclass
class SubscriptionTransition:
    """What a webhook event does to the subscriber's row."""
    status: str
    user_id: Optional[int] = None
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    clear_subscription: bool = False
    # reset the balance to this value
    credits: Optional[int] = None
    # lower the balance to at most this value
    credit_cap: Optional[int] = None


def _user_ref(obj: Any) -> Optional[int]:
    raw = _field(_field(obj, "metadata"), "userId")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _on_subscription_updated(obj: Any) -> SubscriptionTransition:
    stripe_status = _field(obj, "status")
    return SubscriptionTransition(
        status="active" if stripe_status in ("active", "trialing") else "free",
        user_id=_user_ref(obj),
        customer_id=_field(obj, "customer"),
        subscription_id=_field(obj, "id"),
    )


def _on_subscription_deleted(obj: Any) -> SubscriptionTransition:
    return SubscriptionTransition(
        status="free",
        user_id=_user_ref(obj),
        customer_id=_field(obj, "customer"),
        clear_subscription=True,
        credit_cap=FREE_PLAN_CREDITS,
    )


def _on_invoice_paid(obj: Any) -> SubscriptionTransition:
    return SubscriptionTransition(
        status="active",
        user_id=_user_ref(obj),
        customer_id=_field(obj, "customer"),
        subscription_id=_field(obj, "subscription"),
        credits=PRO_PLAN_CREDITS,
    )


def _on_payment_intent_succeeded(obj: Any) -> Optional[SubscriptionTransition]:
    if _field(_field(obj, "metadata"), "type") != "subscription":
        return None
    return SubscriptionTransition(
        status="active",
        user_id=_user_ref(obj),
        customer_id=_field(obj, "customer"),
        subscription_id=_field(obj, "id"),
        credits=PRO_PLAN_CREDITS,
    )


EVENT_HANDLERS: Dict[str, Callable[[Any], Optional[SubscriptionTransition]]] = {
    "customer.subscription.updated": _on_subscription_updated,
    "customer.subscription.deleted": _on_subscription_deleted,
    "invoice.payment_succeeded": _on_invoice_paid,
    "payment_intent.succeeded": _on_payment_intent_succeeded,
}


def _find_user(db: Session, transition: SubscriptionTransition) -> Optional[User]:
    if transition.user_id is not None:
        user = crud.get_user(db, transition.user_id)
        if user:
            return user
    if transition.customer_id:
        return crud.get_user_by_stripe_customer(db, transition.customer_id)
    return None


def handle_event(db: Session, event: Any) -> Dict[str, Any]:
    event_type = _field(event, "type", "")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info("[billing] ignoring webhook %s", event_type)
        return {"received": True, "applied": False}

    transition = handler(_field(_field(event, "data"), "object"))
    if transition is None:
        return {"received": True, "applied": False}

    user = _find_user(db, transition)
    if not user:
        logger.warning("[billing] %s: no user for customer=%s userId=%s",
                       event_type, transition.customer_id, transition.user_id)
        return {"received": True, "applied": False}

    crud.apply_subscription_transition(db, user, transition)
    crud.create_analytics(
        db,
        user_id=user.id,
        event_type="subscription_updated",
        event_data={
            "stripeEvent": event_type,
            "status": user.subscription_status,
            "apiCredits": user.api_credits,
        },
    )
    logger.info("[billing] %s applied to user %s (status=%s)", event_type, user.id, user.subscription_status)
    return {"received": True, "applied": True}
