"""Pydantic schemas for the follow-up queue."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FollowUpType(str, Enum):
    H24 = "24h"
    H48 = "48h"
    D5 = "5d"
    D7 = "7d"


class FollowUpStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {FollowUpStatus.SENT, FollowUpStatus.CANCELLED, FollowUpStatus.FAILED}
)


class FollowUpCreate(BaseModel):
    business_id: str = Field(..., min_length=1)
    conversation_id: str = Field(..., min_length=1)
    follow_up_type: FollowUpType
    scheduled_for: datetime
    lead_id: Optional[str] = None


class FollowUpRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: str
    conversation_id: str
    follow_up_type: str
    scheduled_for: datetime
    status: str
    message_sent: Optional[str] = None
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None


class FollowUpRunResult(BaseModel):
    """Counts for one scheduler batch. skipped counts cancellations."""

    processed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
