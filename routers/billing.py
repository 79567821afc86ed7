import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas import SubscriptionIntentOut
from services import stripe_service
from token_module import get_current_user

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["billing"])


@router.post("/create-subscription", response_model=SubscriptionIntentOut)
def create_subscription(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return stripe_service.create_subscription_intent(db, current_user)


def process_webhook(db: Session, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """Blocking part of the webhook: signature check, then the DB transition."""
    event = stripe_service.construct_event(payload, signature)
    log.info("[billing] webhook received: %s", event["type"])
    return stripe_service.handle_event(db, event)


# no bearer auth: Stripe signs the request instead
@router.post("/webhook/stripe", status_code=200)
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    # the raw body is needed for the signature, so only the read happens on the loop
    payload = await request.body()
    return await run_in_threadpool(process_webhook, db, payload, request.headers.get("stripe-signature"))
