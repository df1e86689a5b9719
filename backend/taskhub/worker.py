"""Celery app running queued project reconciliations."""

from celery import Celery

from taskhub.config import get_settings

settings = get_settings()

celery_app = Celery(
    "taskhub",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["taskhub.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.reconcile_task_time_limit,
    # Reconciliation is idempotent, so a redelivered message is harmless
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)
