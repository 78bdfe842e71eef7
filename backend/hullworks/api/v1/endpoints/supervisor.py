"""HULLWORKS MES — Supervisor dashboard and operator queue endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import PERM_STAGES_LOG, CurrentUser, get_db, require_dashboard, require_permission
from hullworks.core.responses import success_response
from hullworks.services.dashboard_service import DashboardService

router = APIRouter()
queue_router = APIRouter()


@router.get("/dashboard")
async def supervisor_dashboard(
    search: str | None = Query(None),
    status_filter: list[str] | None = Query(None, alias="status"),
    priority: list[str] | None = Query(None),
    model: str | None = Query(None),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_dir: str = Query("desc", alias="sortDir", pattern="^(asc|desc)$"),
    user: CurrentUser = Depends(require_dashboard),
    db: AsyncSession = Depends(get_db),
):
    """WIP board: every open order with its current stage, status counts and kanban columns."""
    board = await DashboardService.supervisor_dashboard(
        db,
        search=search,
        statuses=status_filter,
        priorities=priority,
        model=model,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return success_response(board, meta={"total_count": board["total"]})


@queue_router.get("/my-department")
async def my_department_queue(
    department_id: UUID | None = Query(None, alias="departmentId"),
    user: CurrentUser = Depends(require_permission(PERM_STAGES_LOG)),
    db: AsyncSession = Depends(get_db),
):
    """RELEASED / IN_PROGRESS orders waiting on the selected (or the caller's own) department."""
    selected = department_id or user.department_id
    if selected is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No department specified")
    queue = await DashboardService.department_queue(db, selected)
    return success_response(queue, meta={"total_count": len(queue), "department_id": str(selected)})
