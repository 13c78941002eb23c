"""Channel adapters for WhatsApp and Instagram."""

from typing import Union

from replydesk.adapters.base import BasePlatformAdapter
from replydesk.adapters.instagram import InstagramAdapter
from replydesk.adapters.whatsapp import WhatsAppAdapter
from replydesk.config import get_settings
from replydesk.schemas.messages import Channel

_ADAPTERS: dict[Channel, type[BasePlatformAdapter]] = {
    Channel.WHATSAPP: WhatsAppAdapter,
    Channel.INSTAGRAM: InstagramAdapter,
}


def get_adapter(channel: Union[Channel, str]) -> BasePlatformAdapter:
    """Build the adapter for a channel from current settings."""
    settings = get_settings()
    adapter_cls = _ADAPTERS[Channel(channel)]
    return adapter_cls(
        graph_base_url=settings.graph_base_url,
        timeout_seconds=settings.outbound_timeout_seconds,
    )


__all__ = ["BasePlatformAdapter", "InstagramAdapter", "WhatsAppAdapter", "get_adapter"]
