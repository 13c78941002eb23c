"""
Command that runs the conversation pipeline for one inbound message.

Stages run in a fixed order and each reports its own outcome; an exception in
one stage is recorded as a failed step and the next stage still runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urlencode
from uuid import UUID

from sqlalchemy.orm import Session

from replydesk.config import get_settings
from replydesk.core.stores import KnowledgeStore
from replydesk.schemas.auto_reply import AutoReplyDecision
from replydesk.schemas.business import BusinessContext, ServiceItem
from replydesk.schemas.classification import Classification, Intent
from replydesk.schemas.knowledge import RetrievedChunk
from replydesk.schemas.lead import LeadQualification
from replydesk.schemas.messages import Channel, DispatchResult, InboundMessage
from replydesk.schemas.pipeline import FlowStep, StepStatus
from replydesk.services.auto_reply_service import AutoReplyService
from replydesk.services.business_context_service import BusinessContextService
from replydesk.services.classification_service import classify, fold
from replydesk.services.conversation_log_service import ConversationLogService
from replydesk.services.inbox_service import InboxService
from replydesk.services.knowledge_reply_service import KnowledgeReplyService
from replydesk.services.knowledge_service import KnowledgeService
from replydesk.services.lead_qualification_service import (
    KeywordLeadQualifier,
    LeadQualifier,
)
from replydesk.services.outbound_dispatch_service import OutboundDispatchService

BOOKING_PATH = "/crm/bookings/new"
BOOKING_COPY = {
    "en": "Here is your booking link: {link}",
    "es": "Aqui tienes tu enlace para reservar: {link}",
}


@dataclass
class _RunState:
    """Values handed from one stage to the next within a single run."""

    context: Optional[BusinessContext] = None
    log_id: Optional[UUID] = None
    classification: Optional[Classification] = None
    chunks: list[RetrievedChunk] = field(default_factory=list)
    knowledge_exists: bool = False
    qualification: Optional[LeadQualification] = None
    decision: Optional[AutoReplyDecision] = None


def build_booking_link(base_url: str, business_id: str, service: Optional[str]) -> str:
    params = {"source": "whatsapp", "business_id": business_id}
    if service:
        params["service"] = service
    return f"{base_url.rstrip('/')}{BOOKING_PATH}?{urlencode(params)}"


def match_service(text: str, services: list[ServiceItem]) -> Optional[str]:
    """First catalog service whose name appears verbatim in the message."""
    folded = fold(text)
    for service in services:
        if service.name and fold(service.name) in folded:
            return service.name
    return None


def _dispatch_step(result: DispatchResult, kind: str) -> FlowStep:
    data = {
        "kind": kind,
        "status": result.status,
        "provider_message_id": result.provider_message_id,
        "rollup_ok": result.rollup.ok,
    }
    if result.failed:
        return FlowStep(step=kind, status=StepStatus.FAILED, detail=result.error, data=data)
    if result.skipped:
        return FlowStep(
            step=kind, status=StepStatus.SKIPPED, detail="Already sent or empty.", data=data
        )
    return FlowStep(step=kind, status=StepStatus.OK, data=data)


class RunPipelineCommand:
    """
    Runs record -> classify -> retrieve -> qualify -> auto-reply -> dispatch,
    then the optional knowledge reply and WhatsApp booking handoff.
    """

    def __init__(
        self,
        db: Session,
        dry_run: Optional[bool] = None,
        lead_qualifier: Optional[LeadQualifier] = None,
        dispatcher: Optional[OutboundDispatchService] = None,
        knowledge_store: Optional[KnowledgeStore] = None,
        now: Optional[datetime] = None,
    ) -> None:
        self.db = db
        self.settings = get_settings()
        self.dry_run = self.settings.outbound_dry_run if dry_run is None else dry_run
        self.now = now
        self.business_context_service = BusinessContextService(db)
        self.conversation_log_service = ConversationLogService(db)
        self.inbox_service = InboxService(db)
        self.knowledge_store = knowledge_store or KnowledgeService(db)
        self.knowledge_reply_service = KnowledgeReplyService()
        self.auto_reply_service = AutoReplyService(db, self.conversation_log_service)
        self.lead_qualifier = lead_qualifier or KeywordLeadQualifier()
        self.dispatcher = dispatcher or OutboundDispatchService(db)
        self.logger = logging.getLogger(__name__)

    def execute(self, message: InboundMessage) -> list[FlowStep]:
        """
        Run every stage for `message`.

        Returns:
            Ordered per-stage outcomes; the list doubles as the audit trail.
        """
        state = _RunState()
        stages: list[tuple[str, Callable[[InboundMessage, _RunState], FlowStep]]] = [
            ("incoming_message", self._record_inbound),
            ("intent_detection", self._detect_intent),
            ("knowledge_retrieval", self._retrieve_knowledge),
            ("lead_qualification", self._qualify_lead),
            ("auto_reply", self._decide_auto_reply),
            ("dispatch", self._dispatch_auto_reply),
            ("knowledge_reply", self._knowledge_reply),
            ("booking_handoff", self._booking_handoff),
        ]
        steps: list[FlowStep] = []
        for name, stage in stages:
            try:
                steps.append(stage(message, state))
            except Exception as e:
                self.db.rollback()
                self.logger.exception(
                    "Pipeline stage %s failed for %s", name, message.conversation_id
                )
                steps.append(FlowStep(step=name, status=StepStatus.FAILED, detail=str(e)))
        return steps

    def _business_context(self, message: InboundMessage, state: _RunState):
        if state.context is None:
            state.context = self.business_context_service.load(message.business_id)
        return state.context

    def _classification(self, message: InboundMessage, state: _RunState) -> Classification:
        if state.classification is None:
            state.classification = classify(message.message_text)
        return state.classification

    def _record_inbound(self, message: InboundMessage, state: _RunState) -> FlowStep:
        step = "incoming_message"
        if message.is_echo:
            return FlowStep(
                step=step, status=StepStatus.SKIPPED, detail="Echo of an outbound message."
            )
        state.log_id = self.conversation_log_service.record_inbound(message)
        if state.log_id is None:
            return FlowStep(
                step=step,
                status=StepStatus.SKIPPED,
                detail="Duplicate delivery; already recorded.",
            )
        self.inbox_service.record_inbound(message)
        return FlowStep(
            step=step,
            status=StepStatus.OK,
            data={"log_id": str(state.log_id), "conversation_id": message.conversation_id},
        )

    def _detect_intent(self, message: InboundMessage, state: _RunState) -> FlowStep:
        classification = classify(message.message_text)
        context = self._business_context(message, state)
        if context is not None and context.language_preference:
            classification = classification.model_copy(
                update={"language": context.language_preference}
            )
        state.classification = classification
        if state.log_id is not None:
            self.conversation_log_service.set_intent(state.log_id, classification.label)
            self.inbox_service.set_last_intent(
                message.business_id,
                message.conversation_id,
                message.channel.value,
                classification.label,
            )
        return FlowStep(
            step="intent_detection",
            status=StepStatus.OK,
            data={
                "intent": classification.label,
                "intents": sorted(intent.value for intent in classification.intents),
                "language": classification.language,
            },
        )

    def _retrieve_knowledge(self, message: InboundMessage, state: _RunState) -> FlowStep:
        step = "knowledge_retrieval"
        state.knowledge_exists = self.knowledge_store.has_content(message.business_id)
        if not state.knowledge_exists:
            return FlowStep(
                step=step, status=StepStatus.SKIPPED, detail="No knowledge base content."
            )
        state.chunks = self.knowledge_store.retrieve(
            message.business_id, message.message_text
        )
        return FlowStep(
            step=step,
            status=StepStatus.OK,
            data={
                "count": len(state.chunks),
                "top_score": state.chunks[0].score if state.chunks else 0.0,
            },
        )

    def _qualify_lead(self, message: InboundMessage, state: _RunState) -> FlowStep:
        qualification = self.lead_qualifier.qualify(
            message,
            self._business_context(message, state),
            self._classification(message, state),
        )
        state.qualification = qualification
        data = qualification.model_dump()
        if not qualification.qualified:
            return FlowStep(
                step="lead_qualification",
                status=StepStatus.SKIPPED,
                detail="Not qualified.",
                data=data,
            )
        return FlowStep(
            step="lead_qualification",
            status=StepStatus.OK,
            detail=qualification.reason,
            data=data,
        )

    def _decide_auto_reply(self, message: InboundMessage, state: _RunState) -> FlowStep:
        step = "auto_reply"
        context = self._business_context(message, state)
        if context is None:
            return FlowStep(step=step, status=StepStatus.SKIPPED, detail="Business not found.")
        state.decision = self.auto_reply_service.decide(message, context, now=self.now)
        if state.decision is None:
            return FlowStep(
                step=step,
                status=StepStatus.SKIPPED,
                detail="Auto-reply disabled or message is an echo.",
            )
        return FlowStep(
            step=step,
            status=StepStatus.OK,
            data={"rule": state.decision.rule.value, "text": state.decision.text},
        )

    def _dispatch_auto_reply(self, message: InboundMessage, state: _RunState) -> FlowStep:
        if state.decision is None:
            return FlowStep(step="dispatch", status=StepStatus.SKIPPED, detail="Nothing to send.")
        result = self.dispatcher.send(
            message, state.decision.text, dry_run=self.dry_run, kind="auto_reply"
        )
        outcome = _dispatch_step(result, "auto_reply")
        return outcome.model_copy(update={"step": "dispatch"})

    def _knowledge_reply(self, message: InboundMessage, state: _RunState) -> FlowStep:
        step = "knowledge_reply"
        context = self._business_context(message, state)
        if context is None or not context.ai_reply_enabled:
            return FlowStep(step=step, status=StepStatus.SKIPPED, detail="AI reply not enabled.")
        if self.auto_reply_service.is_echo(message):
            return FlowStep(
                step=step, status=StepStatus.SKIPPED, detail="Echo of an outbound message."
            )
        text = self.knowledge_reply_service.compose(
            message.message_text,
            self._classification(message, state),
            state.chunks,
            state.knowledge_exists,
            context,
        )
        result = self.dispatcher.send(message, text, dry_run=self.dry_run, kind=step)
        outcome = _dispatch_step(result, step)
        data = dict(outcome.data or {})
        data["text"] = text
        return outcome.model_copy(update={"data": data})

    def _booking_handoff(self, message: InboundMessage, state: _RunState) -> FlowStep:
        step = "booking_handoff"
        if message.channel != Channel.WHATSAPP:
            return FlowStep(
                step=step,
                status=StepStatus.SKIPPED,
                detail="Booking handoff only runs for WhatsApp.",
            )
        classification = self._classification(message, state)
        booking = classification.has(Intent.BOOKING) or bool(
            state.qualification and state.qualification.booking_intent
        )
        if not booking:
            return FlowStep(
                step=step, status=StepStatus.SKIPPED, detail="No booking intent detected."
            )
        if self.auto_reply_service.is_echo(message):
            return FlowStep(
                step=step, status=StepStatus.SKIPPED, detail="Echo of an outbound message."
            )
        context = self._business_context(message, state)
        service = match_service(message.message_text, context.services if context else [])
        link = build_booking_link(self.settings.booking_base_url, message.business_id, service)
        text = BOOKING_COPY[classification.language].format(link=link)
        result = self.dispatcher.send(message, text, dry_run=self.dry_run, kind=step)
        outcome = _dispatch_step(result, step)
        data = dict(outcome.data or {})
        data.update({"link": link, "service": service})
        return outcome.model_copy(update={"data": data})
