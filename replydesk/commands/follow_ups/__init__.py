"""Follow-up queue commands."""

from replydesk.commands.follow_ups.process_follow_ups_command import (
    ProcessFollowUpsCommand,
)

__all__ = ["ProcessFollowUpsCommand"]
