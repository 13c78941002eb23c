"""Inbox thread rollup and per-thread messages shown by the CRM inbox."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from replydesk.db import Base, JSONType
from replydesk.models.mixins import TimestampMixin


class InboxThread(Base, TimestampMixin):
    """One row per conversation. last_message_at never moves backwards."""

    __tablename__ = "inbox_threads"

    __table_args__ = (
        UniqueConstraint(
            "business_id",
            "channel",
            "conversation_id",
            name="uq_inbox_threads_business_channel_conversation",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(String(64), nullable=False, index=True)
    channel = Column(String(32), nullable=False)
    conversation_id = Column(String(512), nullable=False)
    contact_name = Column(String(256), nullable=True)
    contact_handle = Column(String(256), nullable=True)
    status = Column(String(16), nullable=False, default="open")
    unread_count = Column(Integer, nullable=False, default=0)
    last_message_text = Column(Text, nullable=True)
    last_message_direction = Column(String(16), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    last_intent = Column(String(32), nullable=True)
    metadata_ = Column("metadata", JSONType, nullable=True, default=dict)

    messages = relationship(
        "InboxMessage",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="InboxMessage.message_timestamp",
    )


class InboxMessage(Base, TimestampMixin):
    __tablename__ = "inbox_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    thread_id = Column(
        Uuid,
        ForeignKey("inbox_threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    business_id = Column(String(64), nullable=False)
    channel = Column(String(32), nullable=False)
    conversation_id = Column(String(512), nullable=False)
    direction = Column(String(16), nullable=False)
    sender_name = Column(String(256), nullable=True)
    sender_handle = Column(String(256), nullable=True)
    message_text = Column(Text, nullable=True)
    message_timestamp = Column(DateTime(timezone=True), nullable=False)
    metadata_ = Column("metadata", JSONType, nullable=True, default=dict)

    thread = relationship("InboxThread", back_populates="messages")
