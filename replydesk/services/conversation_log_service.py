"""Append-only conversation log: inbound records, outbound attempts, echo lookups."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from replydesk.models.conversation_log import ConversationLog
from replydesk.schemas.messages import Direction, InboundMessage

# A failed attempt does not block a later retry of the same reply.
DELIVERED_STATUSES = ("sent", "mocked")
BOT_SENDER_NAME = "Chatbot"


class ConversationLogService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def record_inbound(
        self, message: InboundMessage, intent: Optional[str] = None
    ) -> Optional[UUID]:
        """
        Write the inbound message once per provider message id.

        Returns:
            The new log id, or None when the same provider message was already
            recorded (webhook redelivery).
        """
        provider_id = message.provider_message_id
        if provider_id and self._inbound_exists(message.business_id, provider_id):
            return None

        entry = ConversationLog(
            business_id=message.business_id,
            channel=message.channel.value,
            conversation_id=message.conversation_id,
            direction=Direction.INBOUND.value,
            sender_name=message.sender_name,
            sender_handle=message.sender_handle,
            message_text=message.message_text,
            message_timestamp=message.timestamp,
            intent=intent,
            provider_message_id=provider_id,
            metadata_=dict(message.metadata),
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry.id

    def set_intent(self, log_id: UUID, intent: str) -> None:
        self.db.query(ConversationLog).filter(ConversationLog.id == log_id).update(
            {ConversationLog.intent: intent}, synchronize_session=False
        )
        self.db.commit()

    def _inbound_exists(self, business_id: str, provider_message_id: str) -> bool:
        return (
            self.db.query(ConversationLog.id)
            .filter(
                ConversationLog.business_id == business_id,
                ConversationLog.direction == Direction.INBOUND.value,
                ConversationLog.provider_message_id == provider_message_id,
            )
            .first()
            is not None
        )

    def count_inbound(self, business_id: str, conversation_id: str, channel: str) -> int:
        return (
            self.db.query(ConversationLog)
            .filter(
                ConversationLog.business_id == business_id,
                ConversationLog.conversation_id == conversation_id,
                ConversationLog.channel == channel,
                ConversationLog.direction == Direction.INBOUND.value,
            )
            .count()
        )

    def is_own_outbound(self, business_id: str, provider_message_id: str) -> bool:
        """True when we sent a message with this provider id (an echo came back)."""
        if not provider_message_id:
            return False
        return (
            self.db.query(ConversationLog.id)
            .filter(
                ConversationLog.business_id == business_id,
                ConversationLog.direction == Direction.OUTBOUND.value,
                ConversationLog.provider_message_id == provider_message_id,
            )
            .first()
            is not None
        )

    def find_outbound(
        self,
        business_id: str,
        conversation_id: str,
        channel: str,
        kind: str,
        reply_to: Optional[str],
        text: str,
    ) -> bool:
        """Has this reply already been delivered (matched by reply-to id, else exact text)?"""
        query = self.db.query(ConversationLog.id).filter(
            ConversationLog.business_id == business_id,
            ConversationLog.conversation_id == conversation_id,
            ConversationLog.channel == channel,
            ConversationLog.direction == Direction.OUTBOUND.value,
            ConversationLog.kind == kind,
            ConversationLog.status.in_(DELIVERED_STATUSES),
        )
        if reply_to:
            query = query.filter(ConversationLog.reply_to == reply_to)
        else:
            query = query.filter(ConversationLog.message_text == text)
        return query.first() is not None

    def append_outbound(
        self,
        message: InboundMessage,
        text: str,
        status: str,
        kind: str,
        reply_to: Optional[str] = None,
        provider_message_id: Optional[str] = None,
        error: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ) -> ConversationLog:
        entry = ConversationLog(
            business_id=message.business_id,
            channel=message.channel.value,
            conversation_id=message.conversation_id,
            direction=Direction.OUTBOUND.value,
            sender_name=BOT_SENDER_NAME,
            sender_handle=message.sender_handle,
            message_text=text,
            message_timestamp=sent_at or message.timestamp,
            kind=kind,
            status=status,
            reply_to=reply_to,
            provider_message_id=provider_message_id,
            error=error,
            metadata_={"reply_to": reply_to, "provider_message_id": provider_message_id},
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def get_conversation_logs(
        self, business_id: str, conversation_id: str, limit: int = 100
    ) -> List[ConversationLog]:
        return (
            self.db.query(ConversationLog)
            .filter(
                ConversationLog.business_id == business_id,
                ConversationLog.conversation_id == conversation_id,
            )
            .order_by(ConversationLog.created_at, ConversationLog.message_timestamp)
            .limit(limit)
            .all()
        )
