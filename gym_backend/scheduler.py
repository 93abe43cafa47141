"""Background scheduler for the periodic auto-expiry sweep."""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.engine import Engine

from gym_backend.services.expiry_service import run_scheduled_auto_expire

logger = logging.getLogger(__name__)

AUTO_EXPIRE_JOB_ID = "auto-expire-members"


def start_auto_expire_scheduler(engine: Engine, interval_minutes: int) -> BackgroundScheduler:
    """Start a scheduler that sweeps expired memberships every ``interval_minutes``."""

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_scheduled_auto_expire,
        IntervalTrigger(minutes=interval_minutes),
        args=[engine],
        id=AUTO_EXPIRE_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Auto-expire running every %d minutes", interval_minutes)
    return scheduler


def stop_scheduler(scheduler: BackgroundScheduler) -> None:
    """Stop the scheduler without waiting for a running sweep."""

    scheduler.shutdown(wait=False)
    logger.info("Auto-expire scheduler stopped")
