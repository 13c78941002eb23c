"""Celery task for the periodic follow-up scheduler."""

from __future__ import annotations

from replydesk.commands.follow_ups.process_follow_ups_command import (
    ProcessFollowUpsCommand,
)
from replydesk.infra.celery_app import celery_app
from replydesk.infra.logging_config import get_logger
from replydesk.utils.db.db_session_helper import db_session

logger = get_logger("follow_up_task")


@celery_app.task(name="replydesk.tasks.follow_up_task.process_due_follow_ups_task")
def process_due_follow_ups_task(limit: int | None = None) -> dict[str, int]:
    """Process one batch of due follow-ups; returns the batch counts."""
    with db_session() as db:
        result = ProcessFollowUpsCommand(db).execute(limit=limit)
    logger.info("Follow-up task finished: %s", result.model_dump())
    return result.model_dump()
