"""FollowUpQueueItem: a delayed re-engagement nudge."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Index, String, Text, Uuid

from replydesk.db import Base
from replydesk.models.mixins import TimestampMixin


class FollowUpQueueItem(Base, TimestampMixin):
    """pending -> sent | cancelled | failed. Terminal states are final."""

    __tablename__ = "follow_up_queue"

    __table_args__ = (
        Index("ix_follow_up_queue_status_scheduled", "status", "scheduled_for"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(String(64), nullable=False, index=True)
    conversation_id = Column(String(512), nullable=False)
    lead_id = Column(String(64), nullable=True)
    follow_up_type = Column(String(8), nullable=False)  # 24h | 48h | 5d | 7d
    scheduled_for = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    sent_at = Column(DateTime(timezone=True), nullable=True)
    message_sent = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
