"""
Auto-reply rule engine.

Decides between greeting, out-of-office and fallback copy for an inbound
message. The self-echo check runs before every other branch; it is what keeps
the bot from answering its own messages.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from replydesk.core.business_hours import (
    HoursWindow,
    is_outside_business_hours,
    resolve_window,
)
from replydesk.core.stores import ConversationStore
from replydesk.core.timeutils import utcnow
from replydesk.schemas.auto_reply import AutoReplyDecision, AutoReplyRule, AutoReplyRules
from replydesk.schemas.business import BusinessContext
from replydesk.schemas.classification import Language
from replydesk.schemas.messages import InboundMessage
from replydesk.services.classification_service import detect_language
from replydesk.services.conversation_log_service import ConversationLogService

DEFAULT_TEXTS: dict[AutoReplyRule, dict[str, str]] = {
    AutoReplyRule.GREETING: {
        "en": "Hi! Thanks for reaching out.",
        "es": "Hola. Gracias por escribirnos.",
    },
    AutoReplyRule.FALLBACK: {
        "en": "Thanks for your message. Our team will reply shortly.",
        "es": "Gracias por tu mensaje. Nuestro equipo te respondera pronto.",
    },
    AutoReplyRule.OUT_OF_OFFICE: {
        "en": "We are currently closed. We will get back to you during business hours.",
        "es": "Estamos cerrados en este momento. Te responderemos en el horario laboral.",
    },
}


def _first_text(*candidates: Optional[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def default_text(rule: AutoReplyRule, language: Language) -> str:
    return DEFAULT_TEXTS[rule].get(language, DEFAULT_TEXTS[rule]["en"])


def business_window(rules: AutoReplyRules, context: BusinessContext) -> Optional[HoursWindow]:
    hours = rules.out_of_office.hours
    return resolve_window(hours.start, hours.end, hours.days, context.office_hours)


class AutoReplyService:
    def __init__(
        self, db: Session, conversation_store: Optional[ConversationStore] = None
    ) -> None:
        self.db = db
        self.conversation_store = conversation_store or ConversationLogService(db)

    def is_echo(self, message: InboundMessage) -> bool:
        if message.is_echo:
            return True
        provider_id = message.provider_message_id
        return bool(provider_id) and self.conversation_store.is_own_outbound(
            message.business_id, provider_id
        )

    def decide(
        self,
        message: InboundMessage,
        context: BusinessContext,
        now: Optional[datetime] = None,
    ) -> Optional[AutoReplyDecision]:
        """
        Pick the auto-reply for `message`, or None when no reply should go out.

        Args:
            message: The normalized inbound message (already recorded).
            context: Business configuration.
            now: Evaluation instant; defaults to the current UTC time.
        """
        rules = context.auto_reply_rules
        if not rules.is_enabled:
            return None
        if self.is_echo(message):
            return None

        now = now or utcnow()
        language: Language = context.language_preference or detect_language(
            message.message_text
        )
        outside = is_outside_business_hours(
            business_window(rules, context), now, rules.effective_timezone
        )
        ooo_text = _first_text(rules.out_of_office.text) or default_text(
            AutoReplyRule.OUT_OF_OFFICE, language
        )
        ooo_active = outside and rules.out_of_office.is_enabled

        prior_inbound = self.conversation_store.count_inbound(
            message.business_id, message.conversation_id, message.channel.value
        )
        if prior_inbound <= 1 and rules.greeting.is_enabled:
            greeting = _first_text(
                rules.greeting.text, context.greeting_message
            ) or default_text(AutoReplyRule.GREETING, language)
            text = f"{greeting}\n\n{ooo_text}" if ooo_active else greeting
            return AutoReplyDecision(text=text, rule=AutoReplyRule.GREETING)

        if ooo_active:
            return AutoReplyDecision(text=ooo_text, rule=AutoReplyRule.OUT_OF_OFFICE)

        fallback = _first_text(rules.fallback.text) or default_text(
            AutoReplyRule.FALLBACK, language
        )
        return AutoReplyDecision(text=fallback, rule=AutoReplyRule.FALLBACK)
