"""Periodic jobs: event reminders and the notification retention sweep."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from peertutor.config import settings
from peertutor.db.database import async_session
from peertutor.services import triggers
from peertutor.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


async def run_event_reminders(notifier: NotificationService) -> None:
    try:
        async with async_session() as db:
            await triggers.send_event_reminders(db, notifier)
            await notifier.commit_and_publish(db)
    except Exception as e:
        logger.error(f"Error during event reminder run: {e}", exc_info=True)


async def run_retention_sweep(notifier: NotificationService) -> None:
    try:
        async with async_session() as db:
            await triggers.purge_old_notifications(db, notifier)
            await db.commit()
    except Exception as e:
        logger.error(f"Error during notification retention sweep: {e}", exc_info=True)


def create_scheduler(notifier: NotificationService) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        run_event_reminders,
        trigger=IntervalTrigger(minutes=settings.EVENT_REMINDER_INTERVAL_MINUTES),
        args=[notifier],
        id="event_reminders",
        name="Event Reminders",
        replace_existing=True,
    )
    scheduler.add_job(
        run_retention_sweep,
        trigger=IntervalTrigger(hours=settings.RETENTION_SWEEP_INTERVAL_HOURS),
        args=[notifier],
        id="notification_retention",
        name="Notification Retention Sweep",
        replace_existing=True,
    )

    logger.info(
        "Scheduler configured: reminders every %d min, retention sweep every %d h",
        settings.EVENT_REMINDER_INTERVAL_MINUTES,
        settings.RETENTION_SWEEP_INTERVAL_HOURS,
    )
    return scheduler
