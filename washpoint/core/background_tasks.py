"""In-process scheduler that expires stale booking holds."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from washpoint.config import settings
from washpoint.services.booking_service import booking_service

logger = logging.getLogger(__name__)

# Flag to stop the background task
_stop_expiry_sweep = False


async def run_expiry_sweep() -> int | None:
    """Expire every pending booking past its hold window.

    Returns:
        Number of bookings expired, or None if the sweep failed
    """
    engine = create_async_engine(settings.database_url)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with async_session() as db:
            try:
                return await booking_service.expire_overdue(db)
            except Exception as e:
                await db.rollback()
                logger.error(f"Expiry sweep failed: {e}")
                return None
    finally:
        await engine.dispose()


async def start_expiry_scheduler(interval_seconds: int | None = None) -> None:
    """Run the expiry sweep every ``interval_seconds`` until stopped."""
    global _stop_expiry_sweep
    _stop_expiry_sweep = False
    interval = interval_seconds or settings.expiry_sweep_interval_seconds

    logger.info(f"Expiry scheduler started (every {interval}s)")

    while not _stop_expiry_sweep:
        try:
            await run_expiry_sweep()
        except Exception as e:
            logger.error(f"Scheduled expiry sweep error: {e}")

        # Sleep in one-second steps so a stop request is seen promptly
        for _ in range(interval):
            if _stop_expiry_sweep:
                break
            await asyncio.sleep(1)

    logger.info("Expiry scheduler stopped")


def stop_expiry_scheduler() -> None:
    """Signal the expiry scheduler to stop."""
    global _stop_expiry_sweep
    _stop_expiry_sweep = True
