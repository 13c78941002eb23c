"""
Store interfaces the pipeline depends on.

The SQLAlchemy services in `replydesk.services` satisfy these; tests and
alternative backends can substitute anything with the same shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence
from uuid import UUID

from replydesk.schemas.knowledge import ClearResult, IngestResult, RetrievedChunk
from replydesk.schemas.messages import BestEffortWrite, InboundMessage


class ConversationStore(Protocol):
    def record_inbound(
        self, message: InboundMessage, intent: Optional[str] = None
    ) -> Optional[UUID]:
        """Persist an inbound message once. None when it was already recorded."""
        ...

    def count_inbound(self, business_id: str, conversation_id: str, channel: str) -> int:
        ...

    def is_own_outbound(self, business_id: str, provider_message_id: str) -> bool:
        ...

    def find_outbound(
        self,
        business_id: str,
        conversation_id: str,
        channel: str,
        kind: str,
        reply_to: Optional[str],
        text: str,
    ) -> bool:
        ...

    def append_outbound(
        self,
        message: InboundMessage,
        text: str,
        status: str,
        kind: str,
        reply_to: Optional[str] = None,
        provider_message_id: Optional[str] = None,
        error: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ):
        ...


class ThreadRollup(Protocol):
    def touch_outbound(
        self, message: InboundMessage, text: str, sent_at: datetime
    ) -> BestEffortWrite:
        ...

    def latest_message(self, business_id: str, conversation_id: str):
        ...


class KnowledgeStore(Protocol):
    def ingest(
        self,
        business_id: str,
        source_type: str,
        raw_text: str,
        title: Optional[str] = None,
        source_uri: Optional[str] = None,
    ) -> IngestResult:
        ...

    def retrieve(self, business_id: str, query: str, limit: int = 4) -> Sequence[RetrievedChunk]:
        ...

    def has_content(self, business_id: str) -> bool:
        ...

    def clear(self, business_id: str) -> ClearResult:
        ...


class FollowUpQueue(Protocol):
    def get_due(self, now: datetime, limit: int):
        ...

    def mark_sent(self, item_id, text: str, sent_at: datetime) -> bool:
        ...

    def mark_cancelled(self, item_id, reason: Optional[str] = None) -> bool:
        ...

    def mark_failed(self, item_id, error: str) -> bool:
        ...
