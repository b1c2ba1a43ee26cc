"""
Celery configuration for background tasks
"""

from celery import Celery
from app.core.config import settings

# Create Celery app
celery_app = Celery(
    "engagement_scoring",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.scoring_tasks"]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Periodic full rescoring
if settings.LEAD_SCORE_REFRESH_MINUTES > 0:
    celery_app.conf.beat_schedule = {
        "refresh-lead-scores": {
            "task": "app.tasks.scoring_tasks.compute_lead_scores",
            "schedule": settings.LEAD_SCORE_REFRESH_MINUTES * 60.0,
            "kwargs": {"compute_all": True},
        },
    }
