"""Per-stage outcome records produced by the pipeline orchestrator."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from replydesk.schemas.messages import Channel


class StepStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class FlowStep(BaseModel):
    """One stage outcome; the ordered list is the audit trail of a run."""

    step: str
    status: StepStatus
    detail: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class ConversationRun(BaseModel):
    conversation_id: str
    steps: list[FlowStep] = Field(default_factory=list)


class WebhookResult(BaseModel):
    status: str = "ok"
    results: list[ConversationRun] = Field(default_factory=list)


class SimulateRequest(BaseModel):
    business_id: str = Field(..., min_length=1)
    channel: Channel
    message_text: str = Field(..., min_length=1)
    sender_handle: str = Field(..., min_length=1)
    sender_name: Optional[str] = None


class ConversationLogRead(BaseModel):
    model_config = {"from_attributes": True}

    id: Any
    channel: str
    direction: str
    message_text: Optional[str] = None
    status: Optional[str] = None
    kind: Optional[str] = None
    reply_to: Optional[str] = None
    provider_message_id: Optional[str] = None


class SimulateResponse(BaseModel):
    conversation_id: str
    steps: list[FlowStep]
    logs: list[ConversationLogRead] = Field(default_factory=list)
