"""Intent and language classification result."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

Language = Literal["en", "es"]


class Intent(str, Enum):
    PRICING = "pricing"
    BOOKING = "booking"
    SERVICES = "services"
    HOURS = "hours"
    COMPLAINT = "complaint"


# Escalation first: a complaint outranks everything else.
INTENT_PRIORITY: tuple[Intent, ...] = (
    Intent.COMPLAINT,
    Intent.HOURS,
    Intent.SERVICES,
    Intent.PRICING,
    Intent.BOOKING,
)

GENERIC_INTENT = "generic"


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    intents: frozenset[Intent] = frozenset()
    language: Language = "en"

    def has(self, intent: Intent) -> bool:
        return intent in self.intents

    @property
    def primary_intent(self) -> Optional[Intent]:
        for intent in INTENT_PRIORITY:
            if intent in self.intents:
                return intent
        return None

    @property
    def label(self) -> str:
        """Primary intent value, or 'generic' when nothing matched."""
        primary = self.primary_intent
        return primary.value if primary else GENERIC_INTENT
