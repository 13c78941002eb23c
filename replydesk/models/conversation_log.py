"""
ConversationLog model: the per-message log of a conversation.

Append-only. Inbound rows are written once per provider message id; outbound
rows are written once per dispatch attempt (mocked, sent or failed) and are
never updated. Dispatch idempotency and echo detection read this table.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text, Uuid

from replydesk.db import Base, JSONType


class ConversationLog(Base):
    __tablename__ = "conversation_logs"

    __table_args__ = (
        Index(
            "ix_conversation_logs_business_conversation_channel",
            "business_id",
            "conversation_id",
            "channel",
        ),
        Index(
            "ix_conversation_logs_business_provider_message",
            "business_id",
            "provider_message_id",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(String(64), nullable=False)
    channel = Column(String(32), nullable=False)
    conversation_id = Column(String(512), nullable=False)
    direction = Column(String(16), nullable=False)  # 'inbound' | 'outbound'
    sender_name = Column(String(256), nullable=True)
    sender_handle = Column(String(256), nullable=True)
    message_text = Column(Text, nullable=True)
    message_timestamp = Column(DateTime(timezone=True), nullable=False)
    intent = Column(String(32), nullable=True)
    kind = Column(String(64), nullable=True)  # outbound only, e.g. 'auto_reply'
    status = Column(String(16), nullable=True)  # outbound only: mocked | sent | failed
    reply_to = Column(String(256), nullable=True)
    provider_message_id = Column(String(256), nullable=True)
    error = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSONType, nullable=True, default=dict)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
