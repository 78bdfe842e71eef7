"""HULLWORKS MES — Admin metrics endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin
from hullworks.core.responses import success_response
from hullworks.services.metrics_service import MetricsService

router = APIRouter()


@router.post("/recalculate-all")
async def recalculate_all_metrics(
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Recalculate every active station inline. Per-station failures are reported in the results."""
    results = await MetricsService.update_all_station_metrics(db)
    succeeded = sum(1 for r in results if r["success"])
    return success_response(
        results,
        meta={"total": len(results), "succeeded": succeeded, "failed": len(results) - succeeded},
    )


@router.post("/recalculate-all/async", status_code=202)
async def queue_recalculate_all_metrics(user: CurrentUser = Depends(require_admin)):
    """Hand the batch to the Celery worker."""
    from hullworks.tasks.metrics_tasks import recalculate_all_station_metrics

    result = recalculate_all_station_metrics.delay()
    return success_response({"task_id": result.id})
