import logging

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from delphi_api.config import settings
from delphi_api.core.security import purge_expired_tokens
from delphi_api.db.session import SessionLocal

logger = logging.getLogger(__name__)

# Initialize the scheduler
scheduler = BackgroundScheduler()


# ---------------------------
# Expired access token purge
# ---------------------------

def cleanup_expired_tokens(session_factory=SessionLocal) -> int:
    """Delete expired access tokens. Failures are logged, never raised."""
    db: Session = session_factory()
    try:
        deleted = purge_expired_tokens(db)
        if deleted:
            logger.info("Purged %d expired access tokens", deleted)
        return deleted
    except Exception:
        db.rollback()
        logger.exception("Expired token cleanup failed")
        return 0
    finally:
        db.close()


# ---------------------------
# Start / stop
# ---------------------------

def start_scheduler():
    if scheduler.running:
        return
    scheduler.add_job(
        cleanup_expired_tokens,
        "interval",
        minutes=settings.TOKEN_CLEANUP_INTERVAL_MINUTES,
        id="cleanup_expired_tokens",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Background scheduler started (token cleanup every %d min)",
                settings.TOKEN_CLEANUP_INTERVAL_MINUTES)


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
