"""
Channel adapter interface.

Adapters encapsulate channel-specific protocol handling: decoding webhook
payloads into `InboundMessage`s and calling the provider's send API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from replydesk.core.errors import ProviderError
from replydesk.schemas.business import IntegrationConfig
from replydesk.schemas.messages import Channel, InboundMessage, ProviderSendResult

DEFAULT_TIMEOUT_SECONDS = 15


class BasePlatformAdapter(ABC):
    """Contract for channel adapters. New channels implement this interface."""

    channel: Channel

    def __init__(
        self,
        graph_base_url: str,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._graph_base_url = graph_base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    @abstractmethod
    def parse_webhook(
        self, raw_payload: Any, business_id: Optional[str] = None
    ) -> list[InboundMessage]:
        """Decode a webhook payload. Raise InvalidPayload if the structure is missing."""
        ...

    @abstractmethod
    def send(
        self, integration: IntegrationConfig, recipient: str, text: str
    ) -> ProviderSendResult:
        """Send a text message. Raise MissingCredentials or ProviderError on failure."""
        ...

    def verify_webhook(
        self, mode: Optional[str], token: Optional[str], expected: Optional[str]
    ) -> bool:
        """Meta subscription handshake: hub.mode=subscribe and a matching verify token."""
        return mode == "subscribe" and bool(expected) and token == expected

    def _post(self, path: str, access_token: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._graph_base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        try:
            resp = requests.post(
                url, json=body, headers=headers, timeout=self._timeout_seconds
            )
        except requests.RequestException as e:
            raise ProviderError(f"{self.channel.value} request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not resp.ok:
            error = data.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            raise ProviderError(
                message or f"HTTP {resp.status_code}", status_code=resp.status_code
            )
        return data
