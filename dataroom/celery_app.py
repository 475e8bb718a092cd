from celery import Celery

from dataroom.config import settings

celery_app = Celery(
    "dataroom",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "dataroom.tasks.events",
        "dataroom.tasks.notifications",
        "dataroom.tasks.realtime",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.celery_task_always_eager,
    broker_connection_retry_on_startup=True,
)
