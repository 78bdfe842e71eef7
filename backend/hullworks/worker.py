"""HULLWORKS MES — Celery worker configuration."""
from celery import Celery
from celery.schedules import crontab

from hullworks.config import get_settings

settings = get_settings()

celery_app = Celery(
    "hullworks",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.REDIS_URL,
    include=["hullworks.tasks.metrics_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_retry_delay=60,
    task_routes={
        "hullworks.tasks.*": {"queue": "default"},
    },
)

# Celery Beat schedule
celery_app.conf.beat_schedule = {
    "recalculate-station-metrics-nightly": {
        "task": "hullworks.tasks.metrics_tasks.recalculate_all_station_metrics",
        "schedule": crontab(hour=2, minute=0),
    },
}
