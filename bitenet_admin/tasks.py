"""
Celery Tasks
Scheduled jobs of the admin back-office.
"""

import asyncio
import logging
import time
from datetime import datetime

from bitenet_admin.celery_worker import celery_app
from bitenet_admin.core.config import get_settings
from bitenet_admin.database import Database
from bitenet_admin.services.brand_level import SweepResult, expire_brand_levels

logger = logging.getLogger(__name__)


async def run_brand_sweep(database: Database, skip_unqualified: bool = False) -> SweepResult:
    """One sweep on its own session."""
    async with database.session() as session:
        return await expire_brand_levels(session, skip_unqualified=skip_unqualified)


async def _sweep_with_own_database() -> SweepResult:
    settings = get_settings()
    database = Database(settings.database_url, echo=settings.database_echo)
    try:
        return await run_brand_sweep(database, settings.brand_sweep_skip_unqualified)
    finally:
        await database.dispose()


@celery_app.task(bind=True)
def sweep_brand_levels(self) -> dict:
    """
    Daily brand-level sweep, scheduled by celery_worker.beat_schedule.

    Failures are logged and reported in the result; the task is not retried,
    the next daily run picks up whatever was missed.

    Returns:
        dict: Sweep summary
    """
    task_id = self.request.id
    logger.info(f"📋 Task {task_id}: Brand level sweep started")
    start_time = time.time()

    try:
        result = asyncio.run(_sweep_with_own_database())
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.exception(f"❌ Task {task_id}: Brand level sweep failed after {elapsed}s - {e}")
        return {
            'success': False,
            'message': str(e),
            'task_id': task_id,
            'timestamp': datetime.now().isoformat(),
        }

    elapsed = round(time.time() - start_time, 3)
    logger.info(
        f"✅ Task {task_id}: Brand level sweep visited {result.visited}, "
        f"expired {len(result.expired_ids)} in {elapsed}s"
    )
    return {
        'success': True,
        'task_id': task_id,
        'processing_time_seconds': elapsed,
        'timestamp': datetime.now().isoformat(),
        **result.to_dict(),
    }


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
