"""Read-only business configuration handed to the pipeline."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from replydesk.schemas.auto_reply import AutoReplyRules
from replydesk.schemas.classification import Language


class ServiceItem(BaseModel):
    """One entry of the business's service catalog."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    description: Optional[str] = None
    base_price: Optional[float] = None
    duration_minutes: Optional[int] = None


class BusinessContext(BaseModel):
    business_id: str
    name: Optional[str] = None
    language_preference: Optional[Language] = None
    office_hours: Optional[str] = None
    greeting_message: Optional[str] = None
    auto_reply_rules: AutoReplyRules = Field(default_factory=AutoReplyRules)
    ai_reply_enabled: bool = False
    services: list[ServiceItem] = Field(default_factory=list)


class IntegrationConfig(BaseModel):
    """Per-business channel credentials. Loaded fresh for every dispatch."""

    whatsapp_access_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    instagram_access_token: Optional[str] = None
    instagram_business_id: Optional[str] = None
    webhook_verify_token: Optional[str] = None
