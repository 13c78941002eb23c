"""Tests for ProcessFollowUpsCommand."""

from datetime import timedelta
from unittest.mock import MagicMock

from replydesk.commands.follow_ups import ProcessFollowUpsCommand
from replydesk.models.conversation_log import ConversationLog
from replydesk.models.follow_up import FollowUpQueueItem
from replydesk.models.inbox import InboxMessage
from tests.fixtures.follow_up_fixtures import FOLLOW_UP_DUE


def _reload(db, item):
    db.expire_all()
    return db.query(FollowUpQueueItem).filter(FollowUpQueueItem.id == item.id).one()


def _add_item(db, thread, follow_up_type="24h", conversation_id=None):
    item = FollowUpQueueItem(
        business_id=thread.business_id,
        conversation_id=conversation_id or thread.conversation_id,
        follow_up_type=follow_up_type,
        scheduled_for=FOLLOW_UP_DUE,
        status="pending",
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def _add_inbound(db, thread, at):
    db.add(
        InboxMessage(
            thread_id=thread.id,
            business_id=thread.business_id,
            channel=thread.channel,
            conversation_id=thread.conversation_id,
            direction="inbound",
            sender_handle=thread.contact_handle,
            message_text="Actually, one more question",
            message_timestamp=at,
        )
    )
    db.commit()


def test_due_follow_up_is_sent(db, setup_follow_up):
    result = ProcessFollowUpsCommand(db, dry_run=True).execute(now=FOLLOW_UP_DUE)
    assert (result.processed, result.sent, result.failed, result.skipped) == (1, 1, 0, 0)

    item = _reload(db, setup_follow_up)
    assert item.status == "sent"
    assert "Shine Detailing can help you" in item.message_sent
    assert item.sent_at is not None
    log = db.query(ConversationLog).filter(ConversationLog.kind == "follow_up:24h").one()
    assert log.status == "mocked"
    assert log.sender_handle == "15551234567"


def test_not_due_yet(db, setup_follow_up):
    result = ProcessFollowUpsCommand(db, dry_run=True).execute(
        now=FOLLOW_UP_DUE - timedelta(hours=1)
    )
    assert result.processed == 0
    assert _reload(db, setup_follow_up).status == "pending"


def test_recent_reply_cancels_without_sending(db, setup_thread, setup_follow_up):
    _add_inbound(db, setup_thread, FOLLOW_UP_DUE - timedelta(hours=2))
    dispatcher = MagicMock()
    result = ProcessFollowUpsCommand(db, dispatcher=dispatcher, dry_run=True).execute(
        now=FOLLOW_UP_DUE
    )
    assert result.skipped == 1
    assert _reload(db, setup_follow_up).status == "cancelled"
    dispatcher.send.assert_not_called()


def test_old_reply_does_not_cancel(db, setup_thread, setup_follow_up):
    _add_inbound(db, setup_thread, FOLLOW_UP_DUE - timedelta(hours=30))
    result = ProcessFollowUpsCommand(db, dry_run=True).execute(now=FOLLOW_UP_DUE)
    assert result.sent == 1


def test_missing_thread_fails(db, setup_thread):
    item = _add_item(db, setup_thread, conversation_id="whatsapp:nobody:000")
    result = ProcessFollowUpsCommand(db, dry_run=True).execute(now=FOLLOW_UP_DUE)
    assert result.failed == 1
    reloaded = _reload(db, item)
    assert reloaded.status == "failed"
    assert reloaded.error_message == "Thread not found"


def test_unknown_type_fails(db, setup_thread):
    item = _add_item(db, setup_thread, follow_up_type="3d")
    ProcessFollowUpsCommand(db, dry_run=True).execute(now=FOLLOW_UP_DUE)
    assert _reload(db, item).error_message == "No template for follow-up type 3d"


def test_duplicate_follow_up_is_cancelled(db, setup_thread, setup_follow_up):
    command = ProcessFollowUpsCommand(db, dry_run=True)
    assert command.execute(now=FOLLOW_UP_DUE).sent == 1

    duplicate = _add_item(db, setup_thread)
    result = command.execute(now=FOLLOW_UP_DUE)
    assert result.skipped == 1
    assert _reload(db, duplicate).status == "cancelled"
    assert db.query(ConversationLog).filter(ConversationLog.kind == "follow_up:24h").count() == 1


def test_dispatch_failure_marks_failed(db, setup_follow_up):
    # no channel credentials stored for the business
    result = ProcessFollowUpsCommand(db, dry_run=False).execute(now=FOLLOW_UP_DUE)
    assert result.failed == 1
    assert _reload(db, setup_follow_up).error_message == "Missing WhatsApp credentials."


def test_unexpected_error_marks_failed(db, setup_follow_up):
    dispatcher = MagicMock()
    dispatcher.send.side_effect = RuntimeError("boom")
    result = ProcessFollowUpsCommand(db, dispatcher=dispatcher, dry_run=True).execute(
        now=FOLLOW_UP_DUE
    )
    assert result.failed == 1
    item = _reload(db, setup_follow_up)
    assert item.status == "failed"
    assert item.error_message == "boom"
