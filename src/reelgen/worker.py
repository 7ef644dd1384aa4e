"""Celery worker configuration."""

from celery import Celery

from reelgen.config import settings
from reelgen.logging import setup_logging

# Setup logging before anything else
setup_logging()

celery_app = Celery(
    "reelgen",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=1800,  # backfills walk many videos
    task_soft_time_limit=1740,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
    # Result backend
    result_expires=86400,  # 24 hours
    task_routes={
        "videos.process_video": {"queue": "high"},
        "videos.backfill": {"queue": "low"},
    },
    beat_schedule={
        "backfill-videos-hourly": {
            "task": "videos.backfill",
            "schedule": 3600.0,
            "kwargs": {"limit": 50},
            "options": {"queue": "low"},
        },
    },
)

celery_app.autodiscover_tasks(["reelgen.jobs"])
