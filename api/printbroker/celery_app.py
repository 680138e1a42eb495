"""Celery client for the API to dispatch notice tasks to the document worker."""

from celery import Celery

from printbroker.config import settings

# Client only: tasks run in the document worker, never in the API process
celery_app = Celery(
    "printbroker_api",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    broker_connection_retry_on_startup=False,
    broker_transport_options={"max_retries": 1},
)
