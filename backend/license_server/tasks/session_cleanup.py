"""Client session cleanup background job - removes expired client sessions."""
import logging
from datetime import datetime, timezone
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from license_server.services.auth_service import AuthService


logger = logging.getLogger(__name__)


async def client_session_cleanup_job(session_factory=None):
    """
    Delete every client session whose expires_at has passed.

    Args:
        session_factory: async_sessionmaker to use (defaults to the
            application's AsyncSessionLocal)

    Returns:
        Number of sessions deleted
    """
    if session_factory is None:
        from license_server.database import AsyncSessionLocal
        session_factory = AsyncSessionLocal

    if session_factory is None:
        logger.warning("Client session cleanup skipped: database not configured")
        return 0

    logger.info("Starting client session cleanup job...")
    start_time = datetime.now(timezone.utc)

    try:
        async with session_factory() as session:
            deleted_count = await AuthService(session).cleanup_expired_sessions()
    except Exception as e:
        logger.error("Client session cleanup job failed: %s", str(e))
        raise

    if deleted_count == 0:
        logger.info("No expired client sessions to clean up")
    else:
        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            "Client session cleanup completed: %d sessions deleted in %.2f seconds",
            deleted_count, duration
        )
    return deleted_count


def schedule_client_session_cleanup_job(scheduler: AsyncIOScheduler, interval_hours: int = 1):
    """Register the client session cleanup job with the scheduler."""
    scheduler.add_job(
        client_session_cleanup_job,
        'interval',
        hours=interval_hours,
        id='client_session_cleanup',
        name='Client Session Cleanup',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    logger.info("Scheduled client session cleanup job to run every %d hour(s)", interval_hours)
