"""
Keyword-based intent and language classification.

Pure and total: any string (including empty) classifies without error.
Matching is substring-based on lowercased, accent-folded text.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from replydesk.schemas.classification import Classification, Intent, Language

INTENT_KEYWORDS: dict[Intent, tuple[str, ...]] = {
    Intent.PRICING: ("price", "pricing", "cost", "quote", "precio", "costo", "cotizacion"),
    Intent.BOOKING: (
        "book",
        "booking",
        "appointment",
        "reserve",
        "schedule",
        "cita",
        "agendar",
        "reservar",
    ),
    Intent.SERVICES: ("services", "service list", "options", "servicios", "opciones"),
    Intent.HOURS: ("hours", "open", "horario", "abren", "abierto"),
    Intent.COMPLAINT: (
        "complaint",
        "refund",
        "problem",
        "issue",
        "damage",
        "queja",
        "reclamo",
        "problema",
        "danos",
    ),
}

SPANISH_HINTS = (
    "hola",
    "precio",
    "cita",
    "gracias",
    "por favor",
    "necesito",
    "servicio",
    "horario",
)

TIME_PREFERENCE_KEYWORDS = (
    "today",
    "tomorrow",
    "this week",
    "next week",
    "morning",
    "afternoon",
    "evening",
    "hoy",
    "manana",
    "esta semana",
    "proxima semana",
    "tarde",
    "noche",
)

_DATE = re.compile(r"\b\d{1,2}[/.-]\d{1,2}(?:[/.-]\d{2,4})?\b")
_TIME = re.compile(r"\b\d{1,2}(?::\d{2})?\s?(?:am|pm)\b|\b\d{1,2}:\d{2}\b", re.IGNORECASE)


def fold(text: Optional[str]) -> str:
    """Lowercase and strip diacritics ('Cotización' -> 'cotizacion')."""
    decomposed = unicodedata.normalize("NFKD", (text or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def detect_language(text: Optional[str]) -> Language:
    folded = fold(text)
    return "es" if any(hint in folded for hint in SPANISH_HINTS) else "en"


def detect_intents(text: Optional[str]) -> frozenset[Intent]:
    folded = fold(text)
    return frozenset(
        intent
        for intent, keywords in INTENT_KEYWORDS.items()
        if any(word in folded for word in keywords)
    )


def detect_time_preference(text: Optional[str]) -> Optional[str]:
    """First time-of-day/day keyword, or a literal date/time mention."""
    folded = fold(text)
    for word in TIME_PREFERENCE_KEYWORDS:
        if word in folded:
            return word
    parts = [m.group(0) for m in (_DATE.search(text or ""), _TIME.search(text or "")) if m]
    return " ".join(parts) or None


def classify(text: Optional[str]) -> Classification:
    return Classification(intents=detect_intents(text), language=detect_language(text))
