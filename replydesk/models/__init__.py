from replydesk.models.business import Business, BusinessIntegration, Service
from replydesk.models.conversation_log import ConversationLog
from replydesk.models.follow_up import FollowUpQueueItem
from replydesk.models.inbox import InboxMessage, InboxThread
from replydesk.models.knowledge import KnowledgeChunk, KnowledgeSource

__all__ = [
    "Business",
    "BusinessIntegration",
    "ConversationLog",
    "FollowUpQueueItem",
    "InboxMessage",
    "InboxThread",
    "KnowledgeChunk",
    "KnowledgeSource",
    "Service",
]
