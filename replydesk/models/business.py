"""
Business settings tables.

Owned by the business-settings UI; the pipeline only reads them.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from replydesk.db import Base, JSONType
from replydesk.models.mixins import TimestampMixin


def _new_business_id() -> str:
    return str(uuid.uuid4())


class Business(Base, TimestampMixin):
    __tablename__ = "businesses"

    id = Column(String(64), primary_key=True, default=_new_business_id)
    name = Column(String(256), nullable=False)
    language_preference = Column(String(8), nullable=True)  # 'en' | 'es' | NULL=auto
    office_hours = Column(String(256), nullable=True)  # free text, e.g. "9:00am - 6:00pm"
    greeting_message = Column(Text, nullable=True)
    auto_reply_rules = Column(JSONType, nullable=True)
    ai_reply_enabled = Column(Boolean, nullable=False, default=False)

    integration = relationship(
        "BusinessIntegration",
        back_populates="business",
        uselist=False,
        cascade="all, delete-orphan",
    )
    services = relationship(
        "Service",
        back_populates="business",
        cascade="all, delete-orphan",
        order_by="Service.name",
    )


class BusinessIntegration(Base, TimestampMixin):
    """Per-business channel credentials."""

    __tablename__ = "business_integrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        String(64),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    whatsapp_access_token = Column(Text, nullable=True)
    whatsapp_phone_number_id = Column(String(64), nullable=True)
    instagram_access_token = Column(Text, nullable=True)
    instagram_business_id = Column(String(64), nullable=True)
    webhook_verify_token = Column(String(256), nullable=True)

    business = relationship("Business", back_populates="integration")


class Service(Base, TimestampMixin):
    """Service catalog entry (name, price, duration)."""

    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        String(64),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    business = relationship("Business", back_populates="services")
