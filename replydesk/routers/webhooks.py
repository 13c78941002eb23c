"""
Webhook routes for inbound WhatsApp and Instagram deliveries.

Meta verifies the subscription with a GET handshake, then POSTs deliveries.
Malformed payloads get a 400 and nothing is written.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from replydesk.commands.webhooks.inbound_webhook_command import InboundWebhookCommand
from replydesk.core.errors import InvalidPayload
from replydesk.db import get_db
from replydesk.infra.logging_config import get_logger
from replydesk.schemas.messages import Channel
from replydesk.schemas.pipeline import WebhookResult

logger = get_logger("webhooks")

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        logger.warning("Webhook invalid JSON: %s", e)
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e


def _handle(
    channel: Channel, body: Any, business_id: Optional[str], db: Session
) -> WebhookResult:
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    try:
        return InboundWebhookCommand(db).execute(channel, body, business_id=business_id)
    except InvalidPayload as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{channel}", response_class=PlainTextResponse)
def verify_webhook(
    channel: Channel,
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    business_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> str:
    """Meta subscription handshake: echo hub.challenge when the verify token matches."""
    challenge = InboundWebhookCommand(db).verify_subscription(
        channel, hub_mode, hub_verify_token, hub_challenge, business_id=business_id
    )
    if challenge is None:
        raise HTTPException(status_code=403, detail="Verification failed")
    return challenge


@router.post("/whatsapp", response_model=WebhookResult)
async def whatsapp_webhook(
    request: Request,
    business_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> WebhookResult:
    """Receive WhatsApp Cloud API deliveries."""
    body = await _read_json(request)
    return _handle(Channel.WHATSAPP, body, business_id, db)


@router.post("/instagram", response_model=WebhookResult)
async def instagram_webhook(
    request: Request,
    business_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> WebhookResult:
    """Receive Instagram Messaging deliveries."""
    body = await _read_json(request)
    return _handle(Channel.INSTAGRAM, body, business_id, db)
