"""Error taxonomy for the messaging pipeline."""

from __future__ import annotations


class ReplydeskError(Exception):
    """Base class for domain errors."""


class InvalidPayload(ReplydeskError, ValueError):
    """Webhook payload is missing required structure. Reject before any write."""


class EmptyContent(ReplydeskError, ValueError):
    """Knowledge ingestion received nothing but whitespace."""


class MissingRecipient(ReplydeskError, ValueError):
    """Outbound message has no recipient handle."""


class MissingCredentials(ReplydeskError, ValueError):
    """Business has no channel credentials configured."""


class ProviderError(ReplydeskError, RuntimeError):
    """Channel provider rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
