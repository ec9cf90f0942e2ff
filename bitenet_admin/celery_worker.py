"""
Celery Worker Configuration

Redis is both broker and result backend. Celery beat triggers the brand
tier-expiry sweep once a day at ``BRAND_SWEEP_HOUR:BRAND_SWEEP_MINUTE`` in
``CELERY_TIMEZONE``.

Run:
    celery -A bitenet_admin.celery_worker worker --loglevel=info
    celery -A bitenet_admin.celery_worker beat --loglevel=info
"""

from celery import Celery
from celery.schedules import crontab

from bitenet_admin.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    'bitenet_admin_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['bitenet_admin.tasks'],
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    # Expiry dates are compared against local time
    timezone=settings.celery_timezone,
    enable_utc=True,

    # The sweep is a single short job; one worker process is plenty
    worker_prefetch_multiplier=1,
    worker_concurrency=1,

    result_expires=24 * 3600,

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,

    beat_schedule={
        'sweep-brand-levels-daily': {
            'task': 'bitenet_admin.tasks.sweep_brand_levels',
            'schedule': crontab(
                hour=settings.brand_sweep_hour,
                minute=settings.brand_sweep_minute,
            ),
            # A sweep that waited a whole day in the queue is stale
            'options': {'expires': 23 * 3600},
        },
    },
)


if __name__ == '__main__':
    celery_app.start()
