"""HULLWORKS MES — Admin department endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin
from hullworks.models.organization import Department
from hullworks.schemas.admin import DepartmentCreate, DepartmentResponse, DepartmentUpdate
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.services.export_service import csv_download
from hullworks.services.organization_service import DepartmentService

router = APIRouter()


async def _department_to_response(db: AsyncSession, department: Department) -> DepartmentResponse:
    work_centers, users = await DepartmentService.counts(db, department.id)
    return DepartmentResponse(
        id=department.id,
        name=department.name,
        is_active=department.is_active,
        work_center_count=work_centers,
        user_count=users,
        created_at=department.created_at,
    )


@router.get("", response_model=ApiResponse[list[DepartmentResponse]])
async def list_departments(
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    departments = await DepartmentService.list_departments(db, include_inactive=include_inactive)
    data = [await _department_to_response(db, d) for d in departments]
    return ApiResponse(data=data, meta=Meta.whole_list(data))


@router.get("/export")
async def export_departments(
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """CSV of every department, active or not."""
    departments = await DepartmentService.list_departments(db, include_inactive=True)
    rows = []
    for d in departments:
        work_centers, users = await DepartmentService.counts(db, d.id)
        rows.append([d.id, d.name, "Yes" if d.is_active else "No", work_centers, users, d.created_at.isoformat()])
    return csv_download(
        "departments",
        ["ID", "Name", "Active", "Work Centers", "Users", "Created At"],
        rows,
    )


@router.post("", response_model=ApiResponse[DepartmentResponse], status_code=201)
async def create_department(
    body: DepartmentCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    department = await DepartmentService.create(db, body.name)
    return ApiResponse(data=await _department_to_response(db, department))


@router.get("/{department_id}", response_model=ApiResponse[DepartmentResponse])
async def get_department(
    department_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    department = await DepartmentService.get(db, department_id)
    return ApiResponse(data=await _department_to_response(db, department))


@router.patch("/{department_id}", response_model=ApiResponse[DepartmentResponse])
async def update_department(
    department_id: UUID,
    body: DepartmentUpdate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    department = await DepartmentService.update(db, department_id, body)
    return ApiResponse(data=await _department_to_response(db, department))


@router.delete("/{department_id}", response_model=ApiResponse[DepartmentResponse])
async def delete_department(
    department_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete. Refused while the department still has active work centers or users."""
    department = await DepartmentService.deactivate(db, department_id)
    return ApiResponse(data=await _department_to_response(db, department))
