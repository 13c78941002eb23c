"""Conversation id derivation for inbound messages."""

from __future__ import annotations


def build_conversation_id(
    business_id: str,
    channel: str,
    sender_handle: str | None,
    fallback_id: str | None = None,
) -> str:
    """
    Build a deterministic, channel-scoped conversation id.

    Form: {channel}:{business_id}:{sender_handle}. When the sender handle is
    unknown, the provider message id is used instead so a redelivered webhook
    still maps to the same id.
    """
    anchor = (sender_handle or "").strip() or (fallback_id or "").strip() or "unknown"
    return f"{channel}:{business_id}:{anchor}"
