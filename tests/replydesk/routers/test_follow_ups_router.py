"""Tests for follow-up routes."""

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient


def test_create_follow_up(client: TestClient, setup_business):
    resp = client.post(
        "/follow-ups",
        json={
            "business_id": setup_business.id,
            "conversation_id": f"whatsapp:{setup_business.id}:15551234567",
            "follow_up_type": "48h",
            "scheduled_for": "2026-01-10T15:00:00Z",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "pending"
    assert body["follow_up_type"] == "48h"


def test_create_follow_up_validation(client: TestClient, setup_business):
    resp = client.post(
        "/follow-ups",
        json={
            "business_id": setup_business.id,
            "conversation_id": "whatsapp:x:1",
            "follow_up_type": "3d",
            "scheduled_for": "2026-01-10T15:00:00Z",
        },
    )
    assert resp.status_code == 422


def test_create_follow_up_unknown_business(client: TestClient):
    resp = client.post(
        "/follow-ups",
        json={
            "business_id": "missing",
            "conversation_id": "whatsapp:missing:1",
            "follow_up_type": "24h",
            "scheduled_for": "2026-01-10T15:00:00Z",
        },
    )
    assert resp.status_code == 404


def test_list_follow_ups(client: TestClient, setup_follow_up):
    business_id = setup_follow_up.business_id
    resp = client.get("/follow-ups", params={"business_id": business_id})
    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["status"] == "pending"

    resp = client.get("/follow-ups", params={"business_id": business_id, "status": "sent"})
    assert resp.json()["total"] == 0


@patch("replydesk.adapters.base.requests.post")
def test_process_follow_ups(mock_post, client: TestClient, setup_integration, setup_follow_up):
    resp_ok = MagicMock(status_code=200, ok=True)
    resp_ok.json.return_value = {"messages": [{"id": "wamid.follow-1"}]}
    mock_post.return_value = resp_ok

    resp = client.post("/follow-ups/process")
    assert resp.status_code == 200
    assert resp.json() == {"processed": 1, "sent": 1, "failed": 0, "skipped": 0}
    assert mock_post.call_args.kwargs["json"]["to"] == "15551234567"
