"""
Command that processes one batch of due follow-ups.

Each due item leaves `pending` exactly once: sent, cancelled (the contact
already replied, or the nudge was already delivered) or failed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from replydesk.config import get_settings
from replydesk.core.stores import FollowUpQueue
from replydesk.core.timeutils import ensure_utc, utcnow
from replydesk.models.follow_up import FollowUpQueueItem
from replydesk.models.inbox import InboxThread
from replydesk.schemas.follow_up import FollowUpRunResult
from replydesk.schemas.messages import Channel, Direction, InboundMessage
from replydesk.services.business_context_service import BusinessContextService
from replydesk.services.follow_up_service import FollowUpService, render_follow_up
from replydesk.services.inbox_service import InboxService
from replydesk.services.outbound_dispatch_service import OutboundDispatchService

REENGAGEMENT_WINDOW = timedelta(hours=24)


def thread_target(thread: InboxThread, now: datetime) -> InboundMessage:
    """Address a follow-up at the thread's contact (no reply-to id)."""
    return InboundMessage(
        business_id=thread.business_id,
        channel=Channel(thread.channel),
        conversation_id=thread.conversation_id,
        sender_name=thread.contact_name,
        sender_handle=thread.contact_handle,
        message_text="",
        timestamp=now,
    )


class ProcessFollowUpsCommand:
    def __init__(
        self,
        db: Session,
        dispatcher: Optional[OutboundDispatchService] = None,
        dry_run: Optional[bool] = None,
        follow_up_queue: Optional[FollowUpQueue] = None,
    ) -> None:
        self.db = db
        self.settings = get_settings()
        self.dry_run = self.settings.outbound_dry_run if dry_run is None else dry_run
        self.follow_up_queue = follow_up_queue or FollowUpService(db)
        self.inbox_service = InboxService(db)
        self.business_context_service = BusinessContextService(db)
        self.dispatcher = dispatcher or OutboundDispatchService(db)
        self.logger = logging.getLogger(__name__)

    def execute(
        self, now: Optional[datetime] = None, limit: Optional[int] = None
    ) -> FollowUpRunResult:
        now = ensure_utc(now) or utcnow()
        batch_size = limit or self.settings.follow_up_batch_size
        result = FollowUpRunResult()

        for item in self.follow_up_queue.get_due(now, batch_size):
            result.processed += 1
            item_id = item.id
            try:
                outcome = self._process_item(item, now)
            except Exception as e:
                self.db.rollback()
                self.logger.exception("Follow-up %s failed", item_id)
                outcome = (
                    "failed" if self.follow_up_queue.mark_failed(item_id, str(e)) else None
                )
            if outcome == "sent":
                result.sent += 1
            elif outcome == "failed":
                result.failed += 1
            elif outcome == "cancelled":
                result.skipped += 1

        self.logger.info(
            "Follow-up batch: processed=%s sent=%s failed=%s skipped=%s",
            result.processed,
            result.sent,
            result.failed,
            result.skipped,
        )
        return result

    def _fail(self, item: FollowUpQueueItem, error: str) -> Optional[str]:
        self.logger.warning("Follow-up %s failed: %s", item.id, error)
        return "failed" if self.follow_up_queue.mark_failed(item.id, error) else None

    def _cancel(self, item: FollowUpQueueItem, reason: str) -> Optional[str]:
        self.logger.info("Follow-up %s cancelled: %s", item.id, reason)
        return (
            "cancelled" if self.follow_up_queue.mark_cancelled(item.id, reason) else None
        )

    def _process_item(self, item: FollowUpQueueItem, now: datetime) -> Optional[str]:
        """Return the terminal status applied, or None if another run got there first."""
        item_id = item.id
        context = self.business_context_service.load(item.business_id)
        if context is None:
            return self._fail(item, f"Business {item.business_id} not found")

        thread = self.inbox_service.get_thread(item.business_id, item.conversation_id)
        if thread is None:
            return self._fail(item, "Thread not found")

        latest = self.inbox_service.latest_message(item.business_id, item.conversation_id)
        if latest is not None and latest.direction == Direction.INBOUND.value:
            scheduled_for = ensure_utc(item.scheduled_for)
            if ensure_utc(latest.message_timestamp) > scheduled_for - REENGAGEMENT_WINDOW:
                return self._cancel(item, "User responded recently")

        text = render_follow_up(item.follow_up_type, context.language_preference, context.name)
        if text is None:
            return self._fail(item, f"No template for follow-up type {item.follow_up_type}")

        dispatch = self.dispatcher.send(
            thread_target(thread, now),
            text,
            dry_run=self.dry_run,
            kind=f"follow_up:{item.follow_up_type}",
        )
        if dispatch.sent:
            sent = self.follow_up_queue.mark_sent(item_id, text, utcnow())
            return "sent" if sent else None
        if dispatch.skipped:
            return self._cancel(item, "Follow-up already sent")
        return self._fail(item, dispatch.error or "Dispatch failed")
