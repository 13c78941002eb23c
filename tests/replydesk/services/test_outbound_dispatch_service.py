"""Tests for OutboundDispatchService."""

from unittest.mock import MagicMock, patch

import pytest

from replydesk.models.conversation_log import ConversationLog
from replydesk.models.inbox import InboxThread
from replydesk.schemas.messages import Direction
from replydesk.services.inbox_service import InboxService
from replydesk.services.outbound_dispatch_service import OutboundDispatchService


def _ok(provider_id="wamid.out-1"):
    resp = MagicMock(status_code=200, ok=True)
    resp.json.return_value = {"messages": [{"id": provider_id}]}
    return resp


def _error(status_code=400, message="(#100) Invalid parameter"):
    resp = MagicMock(status_code=status_code, ok=False)
    resp.json.return_value = {"error": {"message": message}}
    return resp


def _outbound_logs(db):
    return (
        db.query(ConversationLog)
        .filter(ConversationLog.direction == Direction.OUTBOUND.value)
        .order_by(ConversationLog.created_at)
        .all()
    )


@pytest.fixture
def message(setup_business, make_inbound):
    return make_inbound(setup_business.id)


@patch("replydesk.adapters.base.requests.post")
def test_send_logs_and_updates_inbox(mock_post, db, setup_integration, message):
    mock_post.return_value = _ok()
    result = OutboundDispatchService(db).send(message, "Hello!", kind="auto_reply")

    assert result.sent is True
    assert result.status == "sent"
    assert result.provider_message_id == "wamid.out-1"
    assert result.rollup.ok is True

    logs = _outbound_logs(db)
    assert len(logs) == 1
    assert logs[0].status == "sent"
    assert logs[0].kind == "auto_reply"
    assert logs[0].reply_to == "wamid.test-1"
    assert logs[0].sender_name == "Chatbot"
    assert logs[0].provider_message_id == "wamid.out-1"

    thread = db.query(InboxThread).filter(InboxThread.conversation_id == message.conversation_id).one()
    assert thread.last_message_direction == "outbound"
    assert thread.last_message_text == "Hello!"


@patch("replydesk.adapters.base.requests.post")
def test_same_reply_is_sent_once(mock_post, db, setup_integration, message):
    mock_post.return_value = _ok()
    service = OutboundDispatchService(db)
    assert service.send(message, "Hello!", kind="auto_reply").sent is True
    again = service.send(message, "Hello!", kind="auto_reply")
    assert again.skipped is True
    assert mock_post.call_count == 1
    assert len(_outbound_logs(db)) == 1


@patch("replydesk.adapters.base.requests.post")
def test_different_kinds_are_independent(mock_post, db, setup_integration, message):
    mock_post.return_value = _ok()
    service = OutboundDispatchService(db)
    assert service.send(message, "Hello!", kind="auto_reply").sent is True
    assert service.send(message, "Business info", kind="knowledge_reply").sent is True
    assert mock_post.call_count == 2


@patch("replydesk.adapters.base.requests.post")
def test_without_reply_to_matches_on_text(mock_post, db, setup_integration, setup_business, make_inbound):
    mock_post.return_value = _ok()
    message = make_inbound(setup_business.id, message_id=None)
    service = OutboundDispatchService(db)
    assert service.send(message, "Hello!").sent is True
    assert service.send(message, "Hello!").skipped is True
    assert service.send(message, "Something else").sent is True


@patch("replydesk.adapters.base.requests.post")
def test_empty_text_is_skipped(mock_post, db, setup_integration, message):
    result = OutboundDispatchService(db).send(message, "   ")
    assert result.skipped is True
    assert _outbound_logs(db) == []
    mock_post.assert_not_called()


@patch("replydesk.adapters.base.requests.post")
def test_missing_recipient_is_logged_as_failed(mock_post, db, setup_integration, setup_business, make_inbound):
    message = make_inbound(setup_business.id, sender=None)
    result = OutboundDispatchService(db).send(message, "Hello!")
    assert result.failed is True
    assert result.error == "Missing recipient."
    assert _outbound_logs(db)[0].status == "failed"
    mock_post.assert_not_called()


@patch("replydesk.adapters.base.requests.post")
def test_provider_error_is_logged_and_retry_allowed(mock_post, db, setup_integration, message):
    mock_post.return_value = _error()
    service = OutboundDispatchService(db)
    failed = service.send(message, "Hello!")
    assert failed.failed is True
    assert failed.error == "(#100) Invalid parameter"
    assert _outbound_logs(db)[0].error == "(#100) Invalid parameter"

    mock_post.return_value = _ok()
    retried = service.send(message, "Hello!")
    assert retried.sent is True
    assert [log.status for log in _outbound_logs(db)] == ["failed", "sent"]


@patch("replydesk.adapters.base.requests.post")
def test_missing_credentials(mock_post, db, message):
    result = OutboundDispatchService(db).send(message, "Hello!")
    assert result.failed is True
    assert result.error == "Missing WhatsApp credentials."
    mock_post.assert_not_called()


@patch("replydesk.adapters.base.requests.post")
def test_dry_run_does_not_call_provider(mock_post, db, message):
    service = OutboundDispatchService(db)
    result = service.send(message, "Hello!", dry_run=True)
    assert result.sent is True
    assert result.status == "mocked"
    assert _outbound_logs(db)[0].status == "mocked"
    assert service.send(message, "Hello!", dry_run=True).skipped is True
    mock_post.assert_not_called()


@patch("replydesk.adapters.base.requests.post")
def test_inbox_failure_does_not_fail_send(mock_post, db, setup_integration, message):
    mock_post.return_value = _ok()
    with patch.object(
        InboxService, "_get_or_create_thread", side_effect=RuntimeError("inbox down")
    ):
        result = OutboundDispatchService(db).send(message, "Hello!")
    assert result.sent is True
    assert result.rollup.attempted is True
    assert result.rollup.ok is False
    assert result.rollup.error == "inbox down"
    assert _outbound_logs(db)[0].status == "sent"


def test_custom_adapter_factory(db, setup_integration, message):
    adapter = MagicMock()
    adapter.send.return_value.provider_message_id = "custom-1"
    service = OutboundDispatchService(db, adapter_factory=lambda channel: adapter)
    result = service.send(message, "Hello!")
    assert result.provider_message_id == "custom-1"
    integration, recipient, text = adapter.send.call_args.args
    assert integration.whatsapp_phone_number_id == "1098765432"
    assert recipient == "15551234567"
    assert text == "Hello!"


def test_unexpected_adapter_error_is_logged_as_failed(db, setup_integration, message):
    adapter = MagicMock()
    adapter.send.side_effect = KeyError(0)
    service = OutboundDispatchService(db, adapter_factory=lambda channel: adapter)
    result = service.send(message, "Hello!")
    assert result.failed is True
    assert result.status == "failed"
    logs = _outbound_logs(db)
    assert len(logs) == 1
    assert logs[0].status == "failed"
    assert logs[0].error == "0"


def test_unknown_channel_adapter_is_logged_as_failed(db, setup_integration, message):
    def factory(channel):
        raise ValueError(f"No adapter for {channel.value}")

    result = OutboundDispatchService(db, adapter_factory=factory).send(message, "Hello!")
    assert result.failed is True
    assert result.error == "No adapter for whatsapp"
    assert _outbound_logs(db)[0].status == "failed"


@patch("replydesk.adapters.base.requests.post")
def test_malformed_success_body_still_logs(mock_post, db, setup_integration, message):
    resp = MagicMock(status_code=200, ok=True)
    resp.json.return_value = {"messages": {"id": "wamid.x"}}
    mock_post.return_value = resp
    result = OutboundDispatchService(db).send(message, "Hello!")
    assert result.sent is True
    assert result.provider_message_id is None
    logs = _outbound_logs(db)
    assert len(logs) == 1
    assert logs[0].status == "sent"
