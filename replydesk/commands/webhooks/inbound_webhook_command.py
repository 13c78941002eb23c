"""
Command to handle inbound channel webhooks.

Normalizes the payload, then runs the pipeline once per text message.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from sqlalchemy.orm import Session

from replydesk.adapters import get_adapter
from replydesk.commands.run_pipeline_command import RunPipelineCommand
from replydesk.config import get_settings
from replydesk.core.errors import InvalidPayload
from replydesk.schemas.messages import Channel
from replydesk.schemas.pipeline import ConversationRun, WebhookResult
from replydesk.services.business_context_service import BusinessContextService
from replydesk.services.message_normalizer import normalize


class InboundWebhookCommand:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.settings = get_settings()
        self.business_context_service = BusinessContextService(db)
        self.logger = logging.getLogger(__name__)

    def execute(
        self,
        channel: Union[Channel, str],
        payload: Any,
        business_id: Optional[str] = None,
    ) -> WebhookResult:
        """
        Process one webhook delivery.

        Raises:
            InvalidPayload: the payload lacks the channel's required structure.
                Nothing has been written when this is raised.
        """
        try:
            messages = normalize(channel, payload, business_id=business_id)
        except InvalidPayload as e:
            self.logger.warning("Rejected %s webhook: %s", channel, e)
            raise

        if not messages:
            self.logger.info("No text messages in %s webhook delivery", channel)
            return WebhookResult(status="ignored")

        pipeline = RunPipelineCommand(self.db)
        results = [
            ConversationRun(
                conversation_id=message.conversation_id,
                steps=pipeline.execute(message),
            )
            for message in messages
        ]
        return WebhookResult(status="ok", results=results)

    def verify_subscription(
        self,
        channel: Union[Channel, str],
        mode: Optional[str],
        token: Optional[str],
        challenge: Optional[str],
        business_id: Optional[str] = None,
    ) -> Optional[str]:
        """Return the challenge to echo back when the verify token matches, else None."""
        expected = self.settings.meta_verify_token
        if business_id:
            integration = self.business_context_service.load_integration_config(
                business_id
            )
            expected = integration.webhook_verify_token or expected
        adapter = get_adapter(channel)
        if not adapter.verify_webhook(mode, token, expected):
            return None
        return challenge or ""
