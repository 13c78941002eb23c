"""Webhook payload builders and an InboundMessage factory."""

from datetime import datetime, timezone
from typing import Optional

import pytest

from replydesk.core.conversation_key import build_conversation_id
from replydesk.schemas.messages import Channel, InboundMessage

# Wednesday 2026-01-07 12:00 in New York (inside Mon-Fri 09:00-18:00)
INSIDE_HOURS = datetime(2026, 1, 7, 17, 0, tzinfo=timezone.utc)
# Wednesday 2026-01-07 23:30 in New York
OUTSIDE_HOURS = datetime(2026, 1, 8, 4, 30, tzinfo=timezone.utc)


def whatsapp_payload(
    business_id: Optional[str],
    sender: str = "15551234567",
    text: Optional[str] = "Hi, do you do ceramic coating?",
    message_id: str = "wamid.HBgLMTU1NTEyMzQ1NjcVAgASGBQ",
    timestamp: str = "1767805200",
    name: str = "Jane Doe",
) -> dict:
    message = {
        "from": sender,
        "id": message_id,
        "timestamp": timestamp,
        "type": "text",
    }
    if text is not None:
        message["text"] = {"body": text}
    payload = {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "102290129340398",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15550783881",
                                "phone_number_id": "1098765432",
                            },
                            "contacts": [{"wa_id": sender, "profile": {"name": name}}],
                            "messages": [message],
                        },
                    }
                ],
            }
        ],
    }
    if business_id:
        payload["business_id"] = business_id
    return payload


def whatsapp_status_payload(business_id: str) -> dict:
    """Delivery receipt: carries statuses, no messages."""
    return {
        "object": "whatsapp_business_account",
        "business_id": business_id,
        "entry": [
            {
                "id": "102290129340398",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "statuses": [{"id": "wamid.sent", "status": "delivered"}],
                        },
                    }
                ],
            }
        ],
    }


def instagram_payload(
    business_id: Optional[str],
    sender: str = "6543210987",
    recipient: str = "17841400000000",
    text: str = "How much is a full detail?",
    mid: str = "aWdfZAG1faXRlbToxOklHTWVzc2FnZAUlEOjE3ODQx",
    timestamp: int = 1767805200000,
    is_echo: bool = False,
) -> dict:
    message = {"mid": mid, "text": text}
    if is_echo:
        message["is_echo"] = True
    payload = {
        "object": "instagram",
        "entry": [
            {
                "id": recipient,
                "time": timestamp,
                "messaging": [
                    {
                        "sender": {"id": sender},
                        "recipient": {"id": recipient},
                        "timestamp": timestamp,
                        "message": message,
                    }
                ],
            }
        ],
    }
    if business_id:
        payload["business_id"] = business_id
    return payload


@pytest.fixture
def make_inbound():
    """Factory for normalized inbound messages."""

    def _make(
        business_id: str,
        text: str = "Hi, do you do ceramic coating?",
        channel: Channel = Channel.WHATSAPP,
        sender: Optional[str] = "15551234567",
        message_id: Optional[str] = "wamid.test-1",
        timestamp: datetime = INSIDE_HOURS,
        **metadata,
    ) -> InboundMessage:
        meta = {"provider": channel.value, "message_id": message_id}
        meta.update(metadata)
        return InboundMessage(
            business_id=business_id,
            channel=channel,
            conversation_id=build_conversation_id(business_id, channel.value, sender, message_id),
            sender_name="Jane Doe",
            sender_handle=sender,
            message_text=text,
            timestamp=timestamp,
            metadata=meta,
        )

    return _make
