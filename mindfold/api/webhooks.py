"""
Payment provider webhook receiver.

Deliveries are authenticated with the Standard Webhooks signature scheme
rather than proxy identity headers.
"""
import json
import logging
import os

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from standardwebhooks.webhooks import Webhook, WebhookVerificationError

from mindfold.db.database import get_db
from mindfold.services import subscription_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])

WEBHOOK_PATH = "/webhook/dodo-payments"


def _error(detail: str, code: int) -> JSONResponse:
    return JSONResponse(status_code=code, content={"detail": detail})


@router.post("/dodo-payments")
async def dodo_payments_webhook(request: Request, db: Session = Depends(get_db)):
    webhook_id = request.headers.get("webhook-id")
    signature = request.headers.get("webhook-signature")
    timestamp = request.headers.get("webhook-timestamp")
    if not webhook_id or not signature or not timestamp:
        return _error("Missing webhook headers", status.HTTP_400_BAD_REQUEST)

    try:
        payload = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        return _error("Invalid webhook payload encoding", status.HTTP_400_BAD_REQUEST)

    secret = os.getenv("DODO_WEBHOOK_SECRET")
    if not secret:
        logger.error("DODO_WEBHOOK_SECRET is not configured; rejecting webhook %s", webhook_id)
        return _error("Invalid webhook signature", status.HTTP_401_UNAUTHORIZED)
    try:
        Webhook(secret).verify(payload, {
            "webhook-id": webhook_id,
            "webhook-signature": signature,
            "webhook-timestamp": timestamp,
        })
    except (WebhookVerificationError, ValueError) as exc:
        logger.warning("Webhook %s failed verification: %s", webhook_id, exc)
        return _error("Invalid webhook signature", status.HTTP_401_UNAUTHORIZED)

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        return _error("Invalid JSON payload", status.HTTP_400_BAD_REQUEST)
    if not isinstance(event, dict):
        return _error("Invalid JSON payload", status.HTTP_400_BAD_REQUEST)

    logger.info("Webhook %s received: %s", webhook_id, event.get("type"))
    if not subscription_service.process_webhook_event(db, webhook_id, event):
        return {"received": True, "duplicate": True}
    return {"received": True}
