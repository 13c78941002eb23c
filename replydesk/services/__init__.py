from replydesk.services.auto_reply_service import AutoReplyService
from replydesk.services.business_context_service import BusinessContextService
from replydesk.services.conversation_log_service import ConversationLogService
from replydesk.services.follow_up_service import FollowUpService
from replydesk.services.inbox_service import InboxService
from replydesk.services.knowledge_reply_service import KnowledgeReplyService
from replydesk.services.knowledge_service import KnowledgeService
from replydesk.services.lead_qualification_service import KeywordLeadQualifier
from replydesk.services.outbound_dispatch_service import OutboundDispatchService

__all__ = [
    "AutoReplyService",
    "BusinessContextService",
    "ConversationLogService",
    "FollowUpService",
    "InboxService",
    "KeywordLeadQualifier",
    "KnowledgeReplyService",
    "KnowledgeService",
    "OutboundDispatchService",
]
