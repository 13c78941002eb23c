"""
Outbound dispatcher.

Routes a reply to the channel's send API with per-business credentials,
guards against duplicate sends and logs every attempt.
"""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from replydesk.adapters import get_adapter
from replydesk.adapters.base import BasePlatformAdapter
from replydesk.core.errors import MissingCredentials, MissingRecipient, ProviderError
from replydesk.core.stores import ConversationStore, ThreadRollup
from replydesk.core.timeutils import utcnow
from replydesk.infra.logging_config import get_logger
from replydesk.schemas.messages import Channel, DispatchResult, InboundMessage
from replydesk.services.business_context_service import BusinessContextService
from replydesk.services.conversation_log_service import ConversationLogService
from replydesk.services.inbox_service import InboxService

logger = get_logger("outbound_dispatch")

DEFAULT_KIND = "reply"
MISSING_RECIPIENT = "Missing recipient."


class OutboundDispatchService:
    def __init__(
        self,
        db: Session,
        conversation_store: Optional[ConversationStore] = None,
        thread_rollup: Optional[ThreadRollup] = None,
        adapter_factory: Callable[[Channel], BasePlatformAdapter] = get_adapter,
    ) -> None:
        self.db = db
        self.conversation_store = conversation_store or ConversationLogService(db)
        self.thread_rollup = thread_rollup or InboxService(db)
        self.business_context_service = BusinessContextService(db)
        self._adapter_factory = adapter_factory

    def send(
        self,
        message: InboundMessage,
        text: str,
        dry_run: bool = False,
        kind: str = DEFAULT_KIND,
    ) -> DispatchResult:
        """
        Send `text` as a reply to `message`.

        Empty text is skipped without a log entry. A reply already delivered for
        the same (business, conversation, channel, kind) and reply-to id (or
        exact text when there is none) is skipped. The check is read-then-write,
        so two concurrent deliveries can still both send.
        """
        if not text or not text.strip():
            return DispatchResult(skipped=True)

        reply_to = message.provider_message_id
        if not message.sender_handle:
            return self._fail(message, text, kind, reply_to, MissingRecipient(MISSING_RECIPIENT))

        if self.conversation_store.find_outbound(
            message.business_id,
            message.conversation_id,
            message.channel.value,
            kind,
            reply_to,
            text,
        ):
            logger.info(
                "Skipping duplicate %s for %s (reply_to=%s)",
                kind,
                message.conversation_id,
                reply_to,
            )
            return DispatchResult(skipped=True)

        if dry_run:
            sent_at = utcnow()
            self._log(message, text, "mocked", kind, reply_to, sent_at=sent_at)
            rollup = self.thread_rollup.touch_outbound(message, text, sent_at)
            return DispatchResult(sent=True, status="mocked", rollup=rollup)

        try:
            integration = self.business_context_service.load_integration_config(
                message.business_id
            )
            adapter = self._adapter_factory(message.channel)
            result = adapter.send(integration, message.sender_handle, text)
        except (MissingCredentials, ProviderError) as e:
            return self._fail(message, text, kind, reply_to, e)
        except SQLAlchemyError as e:
            self.db.rollback()
            return self._fail(message, text, kind, reply_to, e)
        except Exception as e:
            logger.exception("Unexpected error sending %s to %s", kind, message.conversation_id)
            return self._fail(message, text, kind, reply_to, e)

        sent_at = utcnow()
        self._log(
            message,
            text,
            "sent",
            kind,
            reply_to,
            provider_message_id=result.provider_message_id,
            sent_at=sent_at,
        )
        rollup = self.thread_rollup.touch_outbound(message, text, sent_at)
        logger.info(
            "Sent %s to %s via %s (provider_message_id=%s)",
            kind,
            message.conversation_id,
            message.channel.value,
            result.provider_message_id,
        )
        return DispatchResult(
            sent=True,
            status="sent",
            provider_message_id=result.provider_message_id,
            rollup=rollup,
        )

    def _fail(
        self,
        message: InboundMessage,
        text: str,
        kind: str,
        reply_to: Optional[str],
        error: Exception,
    ) -> DispatchResult:
        logger.warning("Dispatch %s to %s failed: %s", kind, message.conversation_id, error)
        self._log(message, text, "failed", kind, reply_to, error=str(error))
        return DispatchResult(failed=True, status="failed", error=str(error))

    def _log(
        self,
        message: InboundMessage,
        text: str,
        status: str,
        kind: str,
        reply_to: Optional[str],
        provider_message_id: Optional[str] = None,
        error: Optional[str] = None,
        sent_at=None,
    ) -> None:
        self.conversation_store.append_outbound(
            message,
            text,
            status=status,
            kind=kind,
            reply_to=reply_to,
            provider_message_id=provider_message_id,
            error=error,
            sent_at=sent_at or utcnow(),
        )
