"""Tests for ConversationLogService."""

from replydesk.models.conversation_log import ConversationLog
from replydesk.services.conversation_log_service import ConversationLogService


def test_record_inbound_is_deduplicated(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    message = make_inbound(setup_business.id)
    log_id = service.record_inbound(message, intent="pricing")
    assert log_id is not None
    assert service.record_inbound(message) is None
    assert service.count_inbound(setup_business.id, message.conversation_id, "whatsapp") == 1

    entry = db.query(ConversationLog).filter(ConversationLog.id == log_id).one()
    assert entry.direction == "inbound"
    assert entry.intent == "pricing"
    assert entry.provider_message_id == "wamid.test-1"
    assert entry.metadata_["provider"] == "whatsapp"


def test_messages_without_provider_id_are_all_kept(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    message = make_inbound(setup_business.id, message_id=None)
    assert service.record_inbound(message) is not None
    assert service.record_inbound(message) is not None
    assert service.count_inbound(setup_business.id, message.conversation_id, "whatsapp") == 2


def test_set_intent(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    log_id = service.record_inbound(make_inbound(setup_business.id))
    service.set_intent(log_id, "booking")
    db.expire_all()
    assert db.query(ConversationLog).filter(ConversationLog.id == log_id).one().intent == "booking"


def test_is_own_outbound(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    message = make_inbound(setup_business.id)
    service.append_outbound(
        message, "Hi", status="sent", kind="reply", provider_message_id="wamid.out-1"
    )
    assert service.is_own_outbound(setup_business.id, "wamid.out-1") is True
    assert service.is_own_outbound(setup_business.id, "wamid.test-1") is False
    assert service.is_own_outbound("other", "wamid.out-1") is False
    assert service.is_own_outbound(setup_business.id, "") is False


def test_find_outbound(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    message = make_inbound(setup_business.id)
    conv = message.conversation_id
    service.append_outbound(message, "Hi", status="sent", kind="auto_reply", reply_to="wamid.test-1")
    service.append_outbound(message, "Oops", status="failed", kind="knowledge_reply", reply_to="wamid.test-1")

    biz = setup_business.id
    assert service.find_outbound(biz, conv, "whatsapp", "auto_reply", "wamid.test-1", "other text")
    assert not service.find_outbound(biz, conv, "whatsapp", "auto_reply", "wamid.other", "Hi")
    assert not service.find_outbound(biz, conv, "whatsapp", "knowledge_reply", "wamid.test-1", "Oops")
    assert not service.find_outbound(biz, conv, "instagram", "auto_reply", "wamid.test-1", "Hi")


def test_find_outbound_by_text(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    message = make_inbound(setup_business.id, message_id=None)
    conv = message.conversation_id
    service.append_outbound(message, "Hi", status="mocked", kind="reply")
    assert service.find_outbound(setup_business.id, conv, "whatsapp", "reply", None, "Hi")
    assert not service.find_outbound(setup_business.id, conv, "whatsapp", "reply", None, "Hello")


def test_get_conversation_logs(db, setup_business, make_inbound):
    service = ConversationLogService(db)
    message = make_inbound(setup_business.id)
    service.record_inbound(message)
    service.append_outbound(message, "Hi", status="sent", kind="reply")
    logs = service.get_conversation_logs(setup_business.id, message.conversation_id)
    assert [log.direction for log in logs] == ["inbound", "outbound"]
