"""Channel payload -> canonical InboundMessage list."""

from __future__ import annotations

from typing import Any, Optional, Union

from replydesk.adapters import get_adapter
from replydesk.core.errors import InvalidPayload
from replydesk.schemas.messages import Channel, InboundMessage


def normalize(
    channel: Union[Channel, str], payload: Any, business_id: Optional[str] = None
) -> list[InboundMessage]:
    """
    Decode a webhook payload for `channel`.

    Returns an empty list for deliveries without text messages (receipts,
    reactions). Raises InvalidPayload when the channel is unknown or the
    required nesting is missing; nothing is written in that case.
    """
    try:
        resolved = Channel(channel)
    except ValueError as e:
        raise InvalidPayload(f"Unsupported channel: {channel}") from e
    return get_adapter(resolved).parse_webhook(payload, business_id=business_id)
