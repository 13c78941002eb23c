"""
Inbox threads: the per-conversation rollup shown in the CRM inbox.

`last_message_at` only moves forward; an older message arriving late is
stored but does not overwrite the rollup.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from replydesk.core.timeutils import ensure_utc
from replydesk.infra.logging_config import get_logger
from replydesk.models.inbox import InboxMessage, InboxThread
from replydesk.schemas.messages import BestEffortWrite, Direction, InboundMessage
from replydesk.services.conversation_log_service import BOT_SENDER_NAME

logger = get_logger("inbox_service")


class InboxService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_thread(
        self, business_id: str, conversation_id: str, channel: Optional[str] = None
    ) -> Optional[InboxThread]:
        query = self.db.query(InboxThread).filter(
            InboxThread.business_id == business_id,
            InboxThread.conversation_id == conversation_id,
        )
        if channel:
            query = query.filter(InboxThread.channel == channel)
        return query.first()

    def _get_or_create_thread(self, message: InboundMessage) -> InboxThread:
        thread = self.get_thread(
            message.business_id, message.conversation_id, message.channel.value
        )
        if thread is None:
            thread = InboxThread(
                business_id=message.business_id,
                channel=message.channel.value,
                conversation_id=message.conversation_id,
                contact_name=message.sender_name,
                contact_handle=message.sender_handle,
                unread_count=0,
            )
            self.db.add(thread)
            self.db.flush()
        return thread

    def _apply(
        self,
        thread: InboxThread,
        text: str,
        direction: Direction,
        at: datetime,
        intent: Optional[str] = None,
    ) -> None:
        current = ensure_utc(thread.last_message_at)
        at = ensure_utc(at)
        if current is None or at >= current:
            thread.last_message_at = at
            thread.last_message_text = text
            thread.last_message_direction = direction.value
        if intent:
            thread.last_intent = intent

    def record_inbound(
        self, message: InboundMessage, intent: Optional[str] = None
    ) -> InboxThread:
        thread = self._get_or_create_thread(message)
        if message.sender_name and not thread.contact_name:
            thread.contact_name = message.sender_name
        if message.sender_handle and not thread.contact_handle:
            thread.contact_handle = message.sender_handle
        thread.unread_count = (thread.unread_count or 0) + 1
        self._apply(thread, message.message_text, Direction.INBOUND, message.timestamp, intent)
        self.db.add(
            InboxMessage(
                thread_id=thread.id,
                business_id=message.business_id,
                channel=message.channel.value,
                conversation_id=message.conversation_id,
                direction=Direction.INBOUND.value,
                sender_name=message.sender_name,
                sender_handle=message.sender_handle,
                message_text=message.message_text,
                message_timestamp=message.timestamp,
                metadata_=dict(message.metadata),
            )
        )
        self.db.commit()
        self.db.refresh(thread)
        return thread

    def set_last_intent(
        self, business_id: str, conversation_id: str, channel: str, intent: str
    ) -> None:
        thread = self.get_thread(business_id, conversation_id, channel)
        if thread is None:
            return
        thread.last_intent = intent
        self.db.commit()

    def touch_outbound(
        self, message: InboundMessage, text: str, sent_at: datetime
    ) -> BestEffortWrite:
        """Mirror an outbound reply into the inbox. Never raises."""
        try:
            thread = self._get_or_create_thread(message)
            self._apply(thread, text, Direction.OUTBOUND, sent_at)
            self.db.add(
                InboxMessage(
                    thread_id=thread.id,
                    business_id=message.business_id,
                    channel=message.channel.value,
                    conversation_id=message.conversation_id,
                    direction=Direction.OUTBOUND.value,
                    sender_name=BOT_SENDER_NAME,
                    sender_handle=message.sender_handle,
                    message_text=text,
                    message_timestamp=sent_at,
                    metadata_={},
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(
                "Inbox rollup write failed for %s: %s", message.conversation_id, e
            )
            return BestEffortWrite(attempted=True, ok=False, error=str(e))
        return BestEffortWrite(attempted=True, ok=True)

    def latest_message(
        self, business_id: str, conversation_id: str
    ) -> Optional[InboxMessage]:
        return (
            self.db.query(InboxMessage)
            .filter(
                InboxMessage.business_id == business_id,
                InboxMessage.conversation_id == conversation_id,
            )
            .order_by(InboxMessage.message_timestamp.desc())
            .first()
        )
