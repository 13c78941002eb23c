"""Lead qualification outcome."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class LeadQualification(BaseModel):
    qualified: bool
    reason: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    booking_intent: bool = False
    lead_id: Optional[str] = None
