"""
Celery application configuration for background tasks.
"""

from celery import Celery

from ..config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "cinema_booking_platform",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "cinema_booking_platform.tasks.booking_tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Periodic sweeps; seat availability never waits for them
celery_app.conf.beat_schedule = {
    "cleanup-expired-holds": {
        "task": "cleanup_expired_holds_task",
        "schedule": settings.hold_cleanup_interval_seconds,
    },
    "expire-abandoned-bookings": {
        "task": "expire_abandoned_bookings_task",
        "schedule": settings.booking_expiry_interval_seconds,
    },
}
