"""
Canonical message contracts.

Every channel payload is decoded into `InboundMessage`; downstream stages
never see channel-specific shapes.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Channel(str, Enum):
    """Supported messaging channels."""

    WHATSAPP = "whatsapp"
    INSTAGRAM = "instagram"


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class InboundMessage(BaseModel):
    """Normalized inbound message (adapter → pipeline). Immutable."""

    model_config = ConfigDict(frozen=True)

    business_id: str
    channel: Channel
    conversation_id: str
    sender_name: Optional[str] = None
    sender_handle: Optional[str] = None
    message_text: str
    timestamp: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def provider_message_id(self) -> Optional[str]:
        """Channel-native id (WhatsApp wamid / Instagram mid), used as reply-to id."""
        for key in ("message_id", "message_mid"):
            value = self.metadata.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @property
    def is_echo(self) -> bool:
        """True when the channel itself flags the event as a copy of our own send."""
        return bool(self.metadata.get("is_echo")) or (
            self.metadata.get("direction") == Direction.OUTBOUND.value
        )


class ProviderSendResult(BaseModel):
    """What a channel send API returned."""

    provider_message_id: Optional[str] = None


class BestEffortWrite(BaseModel):
    """Outcome of a secondary write that must never fail the caller."""

    attempted: bool = False
    ok: bool = False
    error: Optional[str] = None


class DispatchResult(BaseModel):
    """Result of one outbound dispatch attempt. Exactly one of sent/failed/skipped is true."""

    sent: bool = False
    failed: bool = False
    skipped: bool = False
    status: Optional[str] = None  # mocked | sent | failed (log status)
    provider_message_id: Optional[str] = None
    error: Optional[str] = None
    rollup: BestEffortWrite = Field(default_factory=BestEffortWrite)
