"""
Instagram Messaging adapter.

Inbound: entry[].messaging[].{sender,recipient,message}. Echo events (our own
sends reflected back) are kept and flagged so the rule engine can ignore them.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from replydesk.adapters.base import BasePlatformAdapter
from replydesk.core.conversation_key import build_conversation_id
from replydesk.core.errors import InvalidPayload, MissingCredentials
from replydesk.core.timeutils import parse_provider_timestamp
from replydesk.schemas.business import IntegrationConfig
from replydesk.schemas.instagram import InstagramWebhookPayload
from replydesk.schemas.messages import (
    Channel,
    Direction,
    InboundMessage,
    ProviderSendResult,
)


class InstagramAdapter(BasePlatformAdapter):
    channel = Channel.INSTAGRAM

    def parse_webhook(
        self, raw_payload: Any, business_id: Optional[str] = None
    ) -> list[InboundMessage]:
        try:
            payload = InstagramWebhookPayload.model_validate(raw_payload)
        except ValidationError as e:
            raise InvalidPayload(
                f"Invalid Instagram payload ({e.error_count()} errors)"
            ) from e

        resolved_business = payload.business_id or business_id
        if not resolved_business:
            raise InvalidPayload("Missing business_id")

        messages: list[InboundMessage] = []
        for entry in payload.entry:
            for event in entry.messaging:
                if event.message is None:
                    continue
                text = (event.message.text or "").strip()
                if not text:
                    continue
                sender_id = event.sender.id if event.sender else None
                recipient_id = event.recipient.id if event.recipient else None
                is_echo = event.message.is_echo
                # echoes are sent by the business; the contact is the recipient
                contact = recipient_id if is_echo else sender_id
                metadata: dict[str, Any] = {
                    "provider": self.channel.value,
                    "message_mid": event.message.mid,
                    "message_id": event.message.mid,
                    "entry_id": entry.id,
                    "recipient_id": recipient_id,
                    "is_echo": is_echo,
                }
                if is_echo:
                    metadata["direction"] = Direction.OUTBOUND.value
                messages.append(
                    InboundMessage(
                        business_id=resolved_business,
                        channel=self.channel,
                        conversation_id=build_conversation_id(
                            resolved_business,
                            self.channel.value,
                            contact,
                            event.message.mid,
                        ),
                        sender_name=None,
                        sender_handle=contact,
                        message_text=text,
                        timestamp=parse_provider_timestamp(
                            event.timestamp if event.timestamp is not None else entry.time
                        ),
                        metadata=metadata,
                    )
                )
        return messages

    def send(
        self, integration: IntegrationConfig, recipient: str, text: str
    ) -> ProviderSendResult:
        if not integration.instagram_access_token or not integration.instagram_business_id:
            raise MissingCredentials("Missing Instagram credentials.")
        data = self._post(
            f"{integration.instagram_business_id}/messages",
            integration.instagram_access_token,
            {
                "messaging_type": "RESPONSE",
                "recipient": {"id": recipient},
                "message": {"text": text},
            },
        )
        return ProviderSendResult(provider_message_id=data.get("message_id"))
