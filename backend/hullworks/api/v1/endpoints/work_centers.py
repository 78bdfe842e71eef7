"""HULLWORKS MES — Admin work center endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin
from hullworks.models.organization import WorkCenter
from hullworks.schemas.admin import WorkCenterCreate, WorkCenterResponse, WorkCenterUpdate
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.services.export_service import csv_download
from hullworks.services.organization_service import WorkCenterService

router = APIRouter()


async def _work_center_to_response(db: AsyncSession, work_center: WorkCenter) -> WorkCenterResponse:
    return WorkCenterResponse(
        id=work_center.id,
        name=work_center.name,
        department_id=work_center.department_id,
        department_name=work_center.department.name if work_center.department else None,
        is_active=work_center.is_active,
        station_count=await WorkCenterService.station_count(db, work_center.id),
        created_at=work_center.created_at,
    )


@router.get("", response_model=ApiResponse[list[WorkCenterResponse]])
async def list_work_centers(
    department_id: UUID | None = Query(None),
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    work_centers = await WorkCenterService.list_work_centers(db, department_id, include_inactive)
    data = [await _work_center_to_response(db, wc) for wc in work_centers]
    return ApiResponse(data=data, meta=Meta.whole_list(data))


@router.get("/export")
async def export_work_centers(
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    work_centers = await WorkCenterService.list_work_centers(db, include_inactive=True)
    rows = [
        [
            wc.id,
            wc.name,
            wc.department.name if wc.department else None,
            "Yes" if wc.is_active else "No",
            await WorkCenterService.station_count(db, wc.id),
            wc.created_at.isoformat(),
        ]
        for wc in work_centers
    ]
    return csv_download(
        "work-centers",
        ["ID", "Name", "Department", "Active", "Stations", "Created At"],
        rows,
    )


@router.post("", response_model=ApiResponse[WorkCenterResponse], status_code=201)
async def create_work_center(
    body: WorkCenterCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    work_center = await WorkCenterService.create(db, body)
    return ApiResponse(data=await _work_center_to_response(db, work_center))


@router.get("/{work_center_id}", response_model=ApiResponse[WorkCenterResponse])
async def get_work_center(
    work_center_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    work_center = await WorkCenterService.get(db, work_center_id)
    return ApiResponse(data=await _work_center_to_response(db, work_center))


@router.patch("/{work_center_id}", response_model=ApiResponse[WorkCenterResponse])
async def update_work_center(
    work_center_id: UUID,
    body: WorkCenterUpdate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    work_center = await WorkCenterService.update(db, work_center_id, body)
    return ApiResponse(data=await _work_center_to_response(db, work_center))


@router.delete("/{work_center_id}", response_model=ApiResponse[WorkCenterResponse])
async def delete_work_center(
    work_center_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    work_center = await WorkCenterService.deactivate(db, work_center_id)
    return ApiResponse(data=await _work_center_to_response(db, work_center))
