"""Follow-up queue: nurture templates, enqueueing and state transitions."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from replydesk.core.timeutils import ensure_utc, utcnow
from replydesk.models.follow_up import FollowUpQueueItem
from replydesk.schemas.classification import Language
from replydesk.schemas.follow_up import FollowUpCreate, FollowUpStatus

FOLLOW_UP_TEMPLATES: dict[str, dict[str, str]] = {
    "en": {
        "24h": "Hi there! We were chatting yesterday about how {name} can help you. Do you have any additional questions? We're here to help.",
        "48h": "Hi again! Just wanted to make sure you got all the information you needed. If you have any questions about our services, don't hesitate to reach out.",
        "5d": "Hi! It's been a while since we last chatted. If you're still thinking about it, {name} is here to help whenever you're ready.",
        "7d": "Hi! Just a friendly reminder that we're still here to help. If you have any questions or want to schedule an appointment, reach out anytime. Have a great day!",
    },
    "es": {
        "24h": "¡Hola! Ayer estuvimos conversando sobre cómo {name} puede ayudarte. ¿Tienes alguna pregunta adicional? Estamos aquí para ayudarte.",
        "48h": "¡Hola de nuevo! Solo quería asegurarme de que recibiste toda la información que necesitabas. Si tienes alguna duda sobre nuestros servicios, no dudes en escribirnos.",
        "5d": "¡Hola! Ha pasado un tiempo desde nuestra última conversación. Si aún lo estás pensando, {name} está aquí para ayudarte cuando estés listo.",
        "7d": "¡Hola! Solo un recordatorio amigable de que seguimos aquí para ayudarte. Si tienes alguna pregunta o quieres agendar una cita, escríbenos. ¡Que tengas un excelente día!",
    },
}

FALLBACK_NAME = {"en": "our team", "es": "nuestro equipo"}


def render_follow_up(
    follow_up_type: str, language: Optional[Language], business_name: Optional[str]
) -> Optional[str]:
    """Template text for a follow-up type, or None when the type is unknown."""
    lang = "es" if language == "es" else "en"
    template = FOLLOW_UP_TEMPLATES[lang].get(follow_up_type)
    if template is None:
        return None
    return template.format(name=business_name or FALLBACK_NAME[lang])


class FollowUpService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def enqueue(self, data: FollowUpCreate) -> FollowUpQueueItem:
        item = FollowUpQueueItem(
            business_id=data.business_id,
            conversation_id=data.conversation_id,
            lead_id=data.lead_id,
            follow_up_type=data.follow_up_type.value,
            scheduled_for=ensure_utc(data.scheduled_for),
            status=FollowUpStatus.PENDING.value,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def get_item(self, item_id: UUID) -> Optional[FollowUpQueueItem]:
        return self.db.query(FollowUpQueueItem).filter(FollowUpQueueItem.id == item_id).first()

    def get_due(self, now: datetime, limit: int = 50) -> List[FollowUpQueueItem]:
        """Pending items scheduled at or before `now`, oldest first."""
        return (
            self.db.query(FollowUpQueueItem)
            .filter(
                FollowUpQueueItem.status == FollowUpStatus.PENDING.value,
                FollowUpQueueItem.scheduled_for <= ensure_utc(now),
            )
            .order_by(FollowUpQueueItem.scheduled_for.asc())
            .limit(limit)
            .all()
        )

    def get_follow_ups_query(self, business_id: str, status: Optional[str] = None):
        stmt = select(FollowUpQueueItem).where(FollowUpQueueItem.business_id == business_id)
        if status:
            stmt = stmt.where(FollowUpQueueItem.status == status)
        return stmt.order_by(FollowUpQueueItem.scheduled_for.asc())

    def _transition(self, item_id: UUID, values: dict) -> bool:
        """Move a pending item to a terminal state. False if it was no longer pending."""
        updated = (
            self.db.query(FollowUpQueueItem)
            .filter(
                FollowUpQueueItem.id == item_id,
                FollowUpQueueItem.status == FollowUpStatus.PENDING.value,
            )
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        return updated == 1

    def mark_sent(self, item_id: UUID, text: str, sent_at: Optional[datetime] = None) -> bool:
        return self._transition(
            item_id,
            {
                FollowUpQueueItem.status: FollowUpStatus.SENT.value,
                FollowUpQueueItem.message_sent: text,
                FollowUpQueueItem.sent_at: sent_at or utcnow(),
            },
        )

    def mark_cancelled(self, item_id: UUID, reason: Optional[str] = None) -> bool:
        return self._transition(
            item_id,
            {
                FollowUpQueueItem.status: FollowUpStatus.CANCELLED.value,
                FollowUpQueueItem.error_message: reason,
            },
        )

    def mark_failed(self, item_id: UUID, error: str) -> bool:
        return self._transition(
            item_id,
            {
                FollowUpQueueItem.status: FollowUpStatus.FAILED.value,
                FollowUpQueueItem.error_message: error,
            },
        )
