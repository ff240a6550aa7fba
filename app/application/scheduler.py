"""
Background scheduler: runs periodic jobs inside the FastAPI process.

Jobs:
  - Notification dispatcher (every REMINDER_DISPATCH_INTERVAL_MINUTES)
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_notification_dispatch():
    from app.infrastructure.db.session import get_session_factory
    from app.application.notifications import dispatch_due_notifications

    Session = get_session_factory()
    db = Session()
    try:
        dispatch_due_notifications(db)
    except Exception:
        logger.exception("Notification dispatch job failed")
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler with all periodic jobs."""
    minutes = get_settings().REMINDER_DISPATCH_INTERVAL_MINUTES
    scheduler.add_job(
        _run_notification_dispatch,
        "interval",
        minutes=minutes,
        id="notification_dispatch",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started: notification_dispatch (every %d min)", minutes)


def shutdown_scheduler():
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
