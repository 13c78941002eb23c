"""Tests for InboxService."""

from datetime import timedelta

from replydesk.core.timeutils import ensure_utc
from replydesk.models.inbox import InboxMessage
from replydesk.services.inbox_service import InboxService
from tests.fixtures.message_fixtures import INSIDE_HOURS


def test_record_inbound_creates_thread(db, setup_business, make_inbound):
    message = make_inbound(setup_business.id)
    thread = InboxService(db).record_inbound(message, intent="pricing")
    assert thread.contact_name == "Jane Doe"
    assert thread.contact_handle == "15551234567"
    assert thread.unread_count == 1
    assert thread.last_message_direction == "inbound"
    assert thread.last_intent == "pricing"
    assert ensure_utc(thread.last_message_at) == INSIDE_HOURS


def test_unread_count_accumulates(db, setup_business, make_inbound):
    service = InboxService(db)
    service.record_inbound(make_inbound(setup_business.id, message_id="wamid.1"))
    thread = service.record_inbound(
        make_inbound(
            setup_business.id,
            message_id="wamid.2",
            timestamp=INSIDE_HOURS + timedelta(minutes=1),
        )
    )
    assert thread.unread_count == 2


def test_late_message_does_not_rewind_rollup(db, setup_business, make_inbound):
    service = InboxService(db)
    service.record_inbound(make_inbound(setup_business.id, text="newest", message_id="wamid.1"))
    thread = service.record_inbound(
        make_inbound(
            setup_business.id,
            text="delayed",
            message_id="wamid.0",
            timestamp=INSIDE_HOURS - timedelta(hours=1),
        )
    )
    assert thread.last_message_text == "newest"
    assert ensure_utc(thread.last_message_at) == INSIDE_HOURS
    assert db.query(InboxMessage).filter(InboxMessage.thread_id == thread.id).count() == 2


def test_touch_outbound(db, setup_business, make_inbound):
    service = InboxService(db)
    message = make_inbound(setup_business.id)
    service.record_inbound(message)
    sent_at = INSIDE_HOURS + timedelta(seconds=5)
    outcome = service.touch_outbound(message, "Hello!", sent_at)
    assert outcome.ok is True

    thread = service.get_thread(setup_business.id, message.conversation_id, "whatsapp")
    assert thread.last_message_direction == "outbound"
    assert thread.last_message_text == "Hello!"
    latest = service.latest_message(setup_business.id, message.conversation_id)
    assert latest.direction == "outbound"
    assert latest.sender_name == "Chatbot"


def test_set_last_intent(db, setup_business, make_inbound):
    service = InboxService(db)
    message = make_inbound(setup_business.id)
    service.record_inbound(message)
    service.set_last_intent(setup_business.id, message.conversation_id, "whatsapp", "booking")
    assert service.get_thread(setup_business.id, message.conversation_id).last_intent == "booking"
    # unknown thread is a no-op
    service.set_last_intent(setup_business.id, "whatsapp:x:y", "whatsapp", "booking")
