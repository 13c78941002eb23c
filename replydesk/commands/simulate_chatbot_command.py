"""
Dev-only command: run the pipeline for a synthetic message in dry-run mode.

The message goes through the real normalizer (a channel-shaped payload is
built first), so the simulation exercises the same path as a webhook.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from replydesk.commands.run_pipeline_command import RunPipelineCommand
from replydesk.core.errors import InvalidPayload
from replydesk.core.timeutils import utcnow
from replydesk.schemas.messages import Channel
from replydesk.schemas.pipeline import ConversationLogRead, SimulateRequest, SimulateResponse
from replydesk.services.conversation_log_service import ConversationLogService
from replydesk.services.message_normalizer import normalize


def build_simulated_payload(body: SimulateRequest) -> dict[str, Any]:
    """Channel-native webhook JSON carrying one text message."""
    timestamp = int(utcnow().timestamp())
    if body.channel == Channel.WHATSAPP:
        return {
            "object": "whatsapp_business_account",
            "business_id": body.business_id,
            "entry": [
                {
                    "id": "dev-entry",
                    "changes": [
                        {
                            "field": "messages",
                            "value": {
                                "messaging_product": "whatsapp",
                                "contacts": [
                                    {
                                        "wa_id": body.sender_handle,
                                        "profile": {"name": body.sender_name},
                                    }
                                ],
                                "messages": [
                                    {
                                        "id": f"wamid.dev-{uuid.uuid4().hex}",
                                        "from": body.sender_handle,
                                        "timestamp": str(timestamp),
                                        "type": "text",
                                        "text": {"body": body.message_text},
                                    }
                                ],
                            },
                        }
                    ],
                }
            ],
        }
    return {
        "object": "instagram",
        "business_id": body.business_id,
        "entry": [
            {
                "id": "dev-entry",
                "time": timestamp,
                "messaging": [
                    {
                        "sender": {"id": body.sender_handle},
                        "recipient": {"id": "dev-business"},
                        "timestamp": timestamp * 1000,
                        "message": {
                            "mid": f"dev-mid-{uuid.uuid4().hex}",
                            "text": body.message_text,
                        },
                    }
                ],
            }
        ],
    }


class SimulateChatbotCommand:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.conversation_log_service = ConversationLogService(db)
        self.logger = logging.getLogger(__name__)

    def execute(self, body: SimulateRequest) -> SimulateResponse:
        messages = normalize(body.channel, build_simulated_payload(body))
        if not messages:
            raise InvalidPayload("Simulated payload produced no message")
        message = messages[0]

        steps = RunPipelineCommand(self.db, dry_run=True).execute(message)
        logs = self.conversation_log_service.get_conversation_logs(
            message.business_id, message.conversation_id
        )
        self.logger.info(
            "Simulated %s message for %s: %d steps",
            body.channel.value,
            message.conversation_id,
            len(steps),
        )
        return SimulateResponse(
            conversation_id=message.conversation_id,
            steps=steps,
            logs=[ConversationLogRead.model_validate(log) for log in logs],
        )
