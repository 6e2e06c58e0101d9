"""Inbound Workplace webhooks, logged to the callback table."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from workplace_admin.core.config import Settings, get_settings
from workplace_admin.core.deps import get_db
from workplace_admin.core.security import verify_hub_signature
from workplace_admin.core.structured_logging import build_log_context
from workplace_admin.services import callback_service

router = APIRouter(prefix="/api", tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.get("/{topic}/callback")
def verify_webhook(
    topic: str,
    mode: str | None = Query(None, alias="hub.mode"),
    token: str | None = Query(None, alias="hub.verify_token"),
    challenge: str | None = Query(None, alias="hub.challenge"),
    settings: Settings = Depends(get_settings),
):
    """
    Webhook verification endpoint.

    The platform sends a GET with a challenge that must be echoed back as
    PLAIN TEXT (not JSON).
    """
    if mode == "subscribe" and settings.VERIFY_TOKEN and token == settings.VERIFY_TOKEN:
        return PlainTextResponse(challenge or "")

    logger.warning("Webhook verification failed", extra=build_log_context(topic=topic))
    raise HTTPException(status_code=403, detail="Verification failed")


@router.post("/{topic}/callback")
async def receive_webhook(
    topic: str,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Verify X-Hub-Signature-256 and append the delivery to the callback log."""
    body = await request.body()
    if len(body) > settings.WEBHOOK_MAX_PAYLOAD_BYTES:
        raise HTTPException(413, "Payload too large")

    signature = request.headers.get("X-Hub-Signature-256", "")
    if not verify_hub_signature(body, signature):
        logger.warning("Webhook invalid signature", extra=build_log_context(topic=topic))
        raise HTTPException(403, "Invalid signature")

    try:
        payload = body.decode("utf-8")
        json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(400, "Invalid JSON")

    callback_service.record_callback(db, request.url.path, payload)
    return {"status": "ok"}
