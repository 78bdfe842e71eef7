"""HULLWORKS MES — Celery tasks for station labor metrics.

- recalculate_all_station_metrics: nightly via Celery Beat, or queued from the admin API.
"""
import logging

from hullworks.worker import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=2)
def recalculate_all_station_metrics(self) -> dict:
    """Recalculate the rolling metrics window for every active station."""
    import asyncio

    try:
        return asyncio.run(_recalculate_all_async())
    except Exception as exc:
        logger.error("Station metrics batch failed: %s", exc, exc_info=True)
        raise self.retry(exc=exc)


async def _recalculate_all_async() -> dict:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from hullworks.config import get_settings
    from hullworks.services.metrics_service import MetricsService

    # Each asyncio.run gets its own loop, so the pool cannot be shared with the API engine
    engine = create_async_engine(get_settings().DATABASE_URL, pool_pre_ping=True)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    try:
        async with session_maker() as db:
            results = await MetricsService.update_all_station_metrics(db)
            await db.commit()
    finally:
        await engine.dispose()

    succeeded = sum(1 for r in results if r["success"])
    logger.info("Station metrics batch: %d succeeded, %d failed", succeeded, len(results) - succeeded)
    return {"total": len(results), "succeeded": succeeded, "failed": len(results) - succeeded, "results": results}
