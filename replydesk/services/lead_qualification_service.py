"""
Lead qualification.

Lead storage lives outside this service; the pipeline only needs a verdict.
Any object with a matching `qualify` method can replace the keyword default.
"""

from __future__ import annotations

import re
from typing import Optional, Protocol

from replydesk.schemas.business import BusinessContext
from replydesk.schemas.classification import Classification, Intent
from replydesk.schemas.lead import LeadQualification
from replydesk.schemas.messages import InboundMessage
from replydesk.services.classification_service import classify, fold

EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"(?:\+?\d[\d\s().-]{6,}\d)")
MIN_PHONE_LENGTH = 8

BOOKING_KEYWORDS = (
    "book",
    "booking",
    "appointment",
    "schedule",
    "reserve",
    "cita",
    "agendar",
    "reservar",
    "programar",
)


class LeadQualifier(Protocol):
    def qualify(
        self,
        message: InboundMessage,
        context: Optional[BusinessContext] = None,
        classification: Optional[Classification] = None,
    ) -> LeadQualification:
        ...


def extract_email(text: Optional[str]) -> Optional[str]:
    match = EMAIL_PATTERN.search(text or "")
    return match.group(0) if match else None


def extract_phone(text: Optional[str]) -> Optional[str]:
    match = PHONE_PATTERN.search(text or "")
    if not match:
        return None
    digits = re.sub(r"[^\d+]", "", match.group(0))
    return digits if len(digits) >= MIN_PHONE_LENGTH else None


def has_booking_wording(text: Optional[str]) -> bool:
    folded = fold(text)
    return any(keyword in folded for keyword in BOOKING_KEYWORDS)


class KeywordLeadQualifier:
    """Qualifies pricing/booking conversations that carry contact info or explicit booking wording."""

    def qualify(
        self,
        message: InboundMessage,
        context: Optional[BusinessContext] = None,
        classification: Optional[Classification] = None,
    ) -> LeadQualification:
        text = message.message_text
        classification = classification or classify(text)
        email = extract_email(text)
        phone = extract_phone(text) or extract_phone(message.sender_handle)
        booking_intent = has_booking_wording(text)
        has_contact = bool(email or phone)

        if classification.has(Intent.PRICING):
            intent = Intent.PRICING.value
        elif classification.has(Intent.BOOKING):
            intent = Intent.BOOKING.value
        else:
            intent = classification.label
        qualified = intent in (Intent.PRICING.value, Intent.BOOKING.value) and (
            has_contact or booking_intent
        )

        reason = None
        if qualified:
            parts = [f"intent={intent}"]
            if email:
                parts.append("contact=email")
            if phone:
                parts.append("contact=phone")
            if booking_intent:
                parts.append("explicit_booking=true")
            if not has_contact:
                parts.append("contact=missing")
            reason = "; ".join(parts)

        return LeadQualification(
            qualified=qualified,
            reason=reason,
            email=email,
            phone=phone,
            booking_intent=booking_intent,
        )
