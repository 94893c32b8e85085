"""
Cache sweep scheduler using APScheduler.

Expired cache entries are already ignored and dropped when a lookup meets
them. Ids that are never seen again would still hold memory until pushed out
by capacity, so this job purges them on an interval.

The job itself is synchronous; AsyncIOScheduler runs it on its thread pool
executor, next to the request handlers that share the same caches.

A fresh scheduler is created per application lifespan: AsyncIOScheduler binds
to the event loop it was started on.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from ingestion.pipeline import EnhancementPipeline

logger = logging.getLogger(__name__)


def start_scheduler(
    pipeline: EnhancementPipeline, interval_seconds: int
) -> Optional[AsyncIOScheduler]:
    """
    Start the periodic sweep. Called once on app startup.

    Returns None (and schedules nothing) when interval_seconds is 0.
    """
    if interval_seconds <= 0:
        logger.info("Cache sweep disabled")
        return None
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        pipeline.purge_expired,
        trigger="interval",
        seconds=interval_seconds,
        id="cache_sweep",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started (cache sweep interval=%ds)", interval_seconds)
    return scheduler


def stop_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    """Gracefully stop the scheduler. Called on app shutdown."""
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
