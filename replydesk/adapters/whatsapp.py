"""
WhatsApp Cloud API adapter.

Inbound: entry[].changes[].value.{contacts,messages}; only text messages are
kept. Outbound: POST {graph}/{phone_number_id}/messages.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from replydesk.adapters.base import BasePlatformAdapter
from replydesk.core.conversation_key import build_conversation_id
from replydesk.core.errors import InvalidPayload, MissingCredentials
from replydesk.core.timeutils import parse_provider_timestamp
from replydesk.schemas.business import IntegrationConfig
from replydesk.schemas.messages import Channel, InboundMessage, ProviderSendResult
from replydesk.schemas.whatsapp import WhatsAppValue, WhatsAppWebhookPayload


def _contact_names(value: WhatsAppValue) -> dict[str, Optional[str]]:
    names: dict[str, Optional[str]] = {}
    for contact in value.contacts:
        if contact.wa_id:
            names[contact.wa_id] = contact.profile.name if contact.profile else None
    return names


class WhatsAppAdapter(BasePlatformAdapter):
    channel = Channel.WHATSAPP

    def parse_webhook(
        self, raw_payload: Any, business_id: Optional[str] = None
    ) -> list[InboundMessage]:
        try:
            payload = WhatsAppWebhookPayload.model_validate(raw_payload)
        except ValidationError as e:
            raise InvalidPayload(
                f"Invalid WhatsApp payload ({e.error_count()} errors)"
            ) from e

        resolved_business = payload.business_id or business_id
        if not resolved_business:
            raise InvalidPayload("Missing business_id")

        messages: list[InboundMessage] = []
        for entry in payload.entry:
            for change in entry.changes:
                value = change.value
                names = _contact_names(value)
                fallback_name = next(iter(names.values()), None)
                phone_number_id = (
                    value.metadata.phone_number_id if value.metadata else None
                )
                for msg in value.messages:
                    text = ((msg.text.body if msg.text else None) or "").strip()
                    if not text:
                        continue
                    sender = msg.from_
                    metadata: dict[str, Any] = {
                        "provider": self.channel.value,
                        "message_id": msg.id,
                        "entry_id": entry.id,
                        "phone_number_id": phone_number_id,
                    }
                    if msg.context and msg.context.id:
                        metadata["context_id"] = msg.context.id
                    messages.append(
                        InboundMessage(
                            business_id=resolved_business,
                            channel=self.channel,
                            conversation_id=build_conversation_id(
                                resolved_business, self.channel.value, sender, msg.id
                            ),
                            sender_name=names.get(sender or "", fallback_name),
                            sender_handle=sender,
                            message_text=text,
                            timestamp=parse_provider_timestamp(msg.timestamp),
                            metadata=metadata,
                        )
                    )
        return messages

    def send(
        self, integration: IntegrationConfig, recipient: str, text: str
    ) -> ProviderSendResult:
        if not integration.whatsapp_access_token or not integration.whatsapp_phone_number_id:
            raise MissingCredentials("Missing WhatsApp credentials.")
        data = self._post(
            f"{integration.whatsapp_phone_number_id}/messages",
            integration.whatsapp_access_token,
            {
                "messaging_product": "whatsapp",
                "to": recipient,
                "text": {"body": text},
            },
        )
        sent = data.get("messages")
        provider_id = None
        if isinstance(sent, list) and sent and isinstance(sent[0], dict):
            provider_id = sent[0].get("id")
        return ProviderSendResult(provider_message_id=provider_id)
