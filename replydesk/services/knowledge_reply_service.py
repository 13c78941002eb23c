"""Composes a knowledge-grounded reply from retrieved chunks."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from replydesk.core.keywords import normalize_whitespace
from replydesk.schemas.business import BusinessContext
from replydesk.schemas.classification import Classification, Intent, Language
from replydesk.schemas.knowledge import RetrievedChunk
from replydesk.services.classification_service import detect_time_preference

MAX_SUMMARY_CHARS = 360
MAX_CHUNKS_IN_REPLY = 2
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

COPY: dict[str, dict[str, str]] = {
    "missing_knowledge": {
        "en": "No content ingested yet. Add knowledge base content to enable full responses.",
        "es": "Aun no hay contenido ingestado. Agrega informacion en la base de conocimiento para activar respuestas completas.",
    },
    "no_match": {
        "en": "I couldn't find that in the knowledge base. Can you share the service name or more details?",
        "es": "No encontre esa informacion en la base de conocimiento. Puedes indicar el servicio o compartir mas detalles?",
    },
    "escalation": {
        "en": "For this specific request, I'll connect you with the team.",
        "es": "Para este caso especifico, voy a conectar contigo el equipo.",
    },
    "header": {"en": "Business info:", "es": "Info del negocio:"},
    "hours": {
        "en": "Would you like to book an appointment?",
        "es": "Quieres agendar una cita?",
    },
    "services": {
        "en": "Would you like pricing or to book an appointment?",
        "es": "Te interesa un precio o una cita?",
    },
    "pricing": {
        "en": "Which service are you interested in?",
        "es": "Que servicio te interesa?",
    },
    "booking_time": {
        "en": "What day and time do you prefer?",
        "es": "Que dia y hora prefieres?",
    },
    "booking_confirm": {
        "en": "Great. Share your name and phone to confirm.",
        "es": "Listo. Comparte tu nombre y telefono para confirmar.",
    },
    "team": {"en": "our team", "es": "nuestro equipo"},
    "greeting": {
        "en": "Hi, I'm the virtual assistant for {name}. How can I help you today?\n1) Services  2) Pricing  3) Book an appointment",
        "es": "Hola, soy el asistente virtual de {name}. En que te puedo ayudar?\n1) Servicios  2) Precios  3) Reservar cita",
    },
}


def copy_text(key: str, language: Language) -> str:
    return COPY[key][language]


def summarize(text: str, max_chars: int = MAX_SUMMARY_CHARS) -> str:
    """Trim to whole sentences within `max_chars`; hard-cut if the first sentence is longer."""
    cleaned = normalize_whitespace(text)
    if len(cleaned) <= max_chars:
        return cleaned
    summary = ""
    for sentence in _SENTENCE_END.split(cleaned):
        if not sentence:
            continue
        candidate = f"{summary} {sentence}" if summary else sentence
        if len(candidate) > max_chars:
            break
        summary = candidate
    return summary or cleaned[:max_chars]


def format_knowledge(chunks: Sequence[RetrievedChunk]) -> Optional[str]:
    contents = [chunk.content.strip() for chunk in chunks if chunk.content.strip()]
    if not contents:
        return None
    return "\n---\n".join(summarize(c) for c in contents[:MAX_CHUNKS_IN_REPLY])


class KnowledgeReplyService:
    def greeting(self, context: Optional[BusinessContext], language: Language) -> str:
        name = (context.name if context else None) or copy_text("team", language)
        return copy_text("greeting", language).format(name=name)

    def next_prompt(
        self,
        classification: Classification,
        message_text: str,
        context: Optional[BusinessContext],
    ) -> str:
        language = classification.language
        if classification.has(Intent.HOURS):
            return copy_text("hours", language)
        if classification.has(Intent.SERVICES):
            return copy_text("services", language)
        if classification.has(Intent.PRICING):
            return copy_text("pricing", language)
        if classification.has(Intent.BOOKING):
            if detect_time_preference(message_text) is None:
                return copy_text("booking_time", language)
            return copy_text("booking_confirm", language)
        return self.greeting(context, language)

    def compose(
        self,
        message_text: str,
        classification: Classification,
        chunks: Sequence[RetrievedChunk],
        knowledge_exists: bool,
        context: Optional[BusinessContext] = None,
    ) -> str:
        """
        Build the reply text.

        An unconfigured knowledge base and a configured one with no match get
        different copy. Chunks with no keyword overlap (recency fallback) count
        as no match. Complaints are escalated without quoting knowledge.
        """
        language = classification.language
        knowledge = format_knowledge([chunk for chunk in chunks if chunk.score > 0])
        if knowledge is None:
            return copy_text("no_match" if knowledge_exists else "missing_knowledge", language)
        if classification.has(Intent.COMPLAINT):
            return copy_text("escalation", language)
        prompt = self.next_prompt(classification, message_text, context)
        return f"{copy_text('header', language)}\n{knowledge}\n{prompt}".strip()
