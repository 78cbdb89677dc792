"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from resource_hub.config import get_settings

settings = get_settings()

app = Celery(
    "resource_hub",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["resource_hub.tasks.verification", "resource_hub.tasks.asset_sweep"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    task_soft_time_limit=240,  # 4 minutes soft limit
)

app.conf.beat_schedule = {
    "sweep-orphaned-assets": {
        "task": "resource_hub.tasks.asset_sweep.sweep_orphaned_assets",
        "schedule": crontab(hour=3, minute=30),
    },
}
