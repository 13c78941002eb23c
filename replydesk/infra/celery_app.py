"""Celery application and beat schedule."""

from __future__ import annotations

from celery import Celery

from replydesk.config import get_settings

settings = get_settings()

celery_app = Celery(
    "replydesk",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["replydesk.tasks.follow_up_task"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    "process-due-follow-ups": {
        "task": "replydesk.tasks.follow_up_task.process_due_follow_ups_task",
        "schedule": float(settings.follow_up_interval_seconds),
    },
}
