"""
Instagram Messaging webhook payload schemas.

Matches entry[].messaging[].{sender,recipient,timestamp,message}.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field


class InstagramParticipant(BaseModel):
    id: Optional[str] = None


class InstagramMessage(BaseModel):
    mid: Optional[str] = None
    text: Optional[str] = None
    is_echo: bool = False


class InstagramMessagingEvent(BaseModel):
    """One messaging event; reads/reactions carry no `message` and are ignored."""

    sender: Optional[InstagramParticipant] = None
    recipient: Optional[InstagramParticipant] = None
    timestamp: Optional[Union[int, str]] = None
    message: Optional[InstagramMessage] = None


class InstagramEntry(BaseModel):
    id: Optional[str] = None
    time: Optional[int] = None
    messaging: list[InstagramMessagingEvent]


class InstagramWebhookPayload(BaseModel):
    object: Optional[str] = None
    business_id: Optional[str] = None
    entry: list[InstagramEntry] = Field(..., min_length=1)
