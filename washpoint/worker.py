"""Celery worker configuration.

For deployments that run the hold-expiry sweep out of process instead of
inside the API. Start a worker and beat with:

    celery -A washpoint.worker worker --beat
"""

from celery import Celery
from celery.schedules import crontab

from washpoint.config import settings

celery_app = Celery(
    "washpoint_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["washpoint.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Ho_Chi_Minh",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=120,
    task_soft_time_limit=90,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=3600,

    # Beat schedule for periodic tasks
    beat_schedule={
        # Release holds whose 15-minute window has passed
        "expire-stale-holds": {
            "task": "washpoint.tasks.expire_stale_bookings",
            "schedule": crontab(minute="*"),
        },
        # Low-stock digest for providers every morning
        "report-low-stock": {
            "task": "washpoint.tasks.report_low_stock",
            "schedule": crontab(hour=7, minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
