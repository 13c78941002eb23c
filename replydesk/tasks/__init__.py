# Import celery app first
from replydesk.infra.celery_app import celery_app

# Initialize logging configuration for Celery workers
from replydesk.infra.logging_config import LoggingConfig
from replydesk.tasks.follow_up_task import process_due_follow_ups_task

LoggingConfig()  # Initialize logging

__all__ = ["celery_app", "process_due_follow_ups_task"]
