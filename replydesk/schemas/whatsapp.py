"""
WhatsApp Cloud API webhook payload schemas.

Matches entry[].changes[].value.{metadata,contacts,messages,statuses}.
Only the fields the pipeline reads are modelled; everything else is ignored.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class WhatsAppProfile(BaseModel):
    name: Optional[str] = None


class WhatsAppContact(BaseModel):
    wa_id: Optional[str] = None
    profile: Optional[WhatsAppProfile] = None


class WhatsAppText(BaseModel):
    body: Optional[str] = None


class WhatsAppContext(BaseModel):
    """Present when the user replied to a specific message."""

    id: Optional[str] = None
    from_: Optional[str] = Field(None, alias="from")

    model_config = {"populate_by_name": True}


class WhatsAppMessage(BaseModel):
    id: Optional[str] = None
    from_: Optional[str] = Field(None, alias="from")
    timestamp: Optional[Union[int, str]] = None
    type: Optional[str] = None
    text: Optional[WhatsAppText] = None
    context: Optional[WhatsAppContext] = None

    model_config = {"populate_by_name": True}


class WhatsAppValueMetadata(BaseModel):
    display_phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None


class WhatsAppValue(BaseModel):
    messaging_product: Optional[str] = None
    metadata: Optional[WhatsAppValueMetadata] = None
    contacts: list[WhatsAppContact] = Field(default_factory=list)
    messages: list[WhatsAppMessage] = Field(default_factory=list)
    statuses: list[dict[str, Any]] = Field(default_factory=list)


class WhatsAppChange(BaseModel):
    field: Optional[str] = None
    value: WhatsAppValue


class WhatsAppEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WhatsAppChange]


class WhatsAppWebhookPayload(BaseModel):
    """Root object. `business_id` is our own routing field, not Meta's."""

    object: Optional[str] = None
    business_id: Optional[str] = None
    entry: list[WhatsAppEntry] = Field(..., min_length=1)
