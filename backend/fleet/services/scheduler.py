"""
Background jobs (APScheduler).

Currently one job: dropping expired entries from the in-process cache so
that keys nobody reads again do not pile up.
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fleet.cache import CacheBackend
from fleet.core.config import settings

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


def sweep_cache(cache: CacheBackend) -> int:
    """Remove expired cache entries; returns how many were dropped"""
    try:
        removed = cache.sweep()
    except Exception as e:
        logger.error(f"❌ Cache sweep failed: {e}")
        return 0
    if removed:
        logger.debug(f"🧹 Cache sweep dropped {removed} expired entries")
    return removed


def init_scheduler(cache: CacheBackend):
    """Create and start the scheduler"""
    global scheduler

    if not settings.CACHE_SWEEP_ENABLED:
        logger.info("🧹 Cache sweep disabled")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        sweep_cache,
        trigger=IntervalTrigger(seconds=settings.CACHE_SWEEP_INTERVAL_SECONDS),
        args=[cache],
        id="cache_sweep",
        name="Expired cache entry sweep",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"⏰ Scheduler started - cache sweep every {settings.CACHE_SWEEP_INTERVAL_SECONDS}s")


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("⏰ Scheduler stopped")


def get_scheduler_status() -> dict:
    if not scheduler:
        return {
            "enabled": settings.CACHE_SWEEP_ENABLED,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.CACHE_SWEEP_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
