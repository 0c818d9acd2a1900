"""
Celery app for background plan expansion.

Run a worker from apps/api:
    celery -A tasks worker --loglevel=info

The API imports this package to enqueue; the worker imports it to execute.
"""
from celery import Celery, signals
from core.config import settings
from core.logging import setup_logging

# Hard limit leaves headroom over the expander's own deadline
TASK_SOFT_TIME_LIMIT_S = int(settings.DAILY_PLAN_SOFT_TIME_LIMIT_S) + 60
TASK_TIME_LIMIT_S = TASK_SOFT_TIME_LIMIT_S + 60

celery_app = Celery(
    "health_transformation",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_soft_time_limit=TASK_SOFT_TIME_LIMIT_S,
    task_time_limit=TASK_TIME_LIMIT_S,
    result_expires=24 * 3600,
)


@signals.setup_logging.connect
def configure_worker_logging(**kwargs):
    """Worker logs use the API's formatter instead of Celery's default."""
    setup_logging()


# Register tasks
from . import plan_tasks  # noqa: E402

__all__ = ["celery_app"]
