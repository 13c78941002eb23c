"""Webhook command handlers."""

from replydesk.commands.webhooks.inbound_webhook_command import InboundWebhookCommand

__all__ = ["InboundWebhookCommand"]
