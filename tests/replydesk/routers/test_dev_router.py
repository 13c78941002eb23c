"""Tests for the dev simulation route."""

from unittest.mock import patch

from fastapi.testclient import TestClient


@patch("replydesk.adapters.base.requests.post")
def test_simulate_whatsapp(mock_post, client: TestClient, setup_business):
    resp = client.post(
        "/dev/chatbot-simulate",
        json={
            "business_id": setup_business.id,
            "channel": "whatsapp",
            "message_text": "Hi, how much is an interior detail?",
            "sender_handle": "15559876543",
            "sender_name": "Sam",
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["conversation_id"] == f"whatsapp:{setup_business.id}:15559876543"
    assert len(body["steps"]) == 8
    assert [log["direction"] for log in body["logs"]] == ["inbound", "outbound"]
    assert body["logs"][1]["status"] == "mocked"
    mock_post.assert_not_called()


def test_simulate_instagram(client: TestClient, setup_business):
    resp = client.post(
        "/dev/chatbot-simulate",
        json={
            "business_id": setup_business.id,
            "channel": "instagram",
            "message_text": "hola",
            "sender_handle": "6543210987",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["conversation_id"] == f"instagram:{setup_business.id}:6543210987"


def test_simulate_validation(client: TestClient, setup_business):
    resp = client.post(
        "/dev/chatbot-simulate",
        json={
            "business_id": setup_business.id,
            "channel": "whatsapp",
            "message_text": "",
            "sender_handle": "1",
        },
    )
    assert resp.status_code == 422


def test_hidden_in_production(client: TestClient, monkeypatch, setup_business):
    monkeypatch.setenv("ENV", "production")
    resp = client.post(
        "/dev/chatbot-simulate",
        json={
            "business_id": setup_business.id,
            "channel": "whatsapp",
            "message_text": "hi",
            "sender_handle": "1",
        },
    )
    assert resp.status_code == 404
