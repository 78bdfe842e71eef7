"""HULLWORKS MES — Admin equipment endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin
from hullworks.models.organization import Equipment
from hullworks.schemas.admin import EquipmentCreate, EquipmentResponse, EquipmentUpdate
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.services.export_service import csv_download
from hullworks.services.organization_service import EquipmentService

router = APIRouter()


async def _equipment_to_response(db: AsyncSession, equipment: Equipment) -> EquipmentResponse:
    return EquipmentResponse(
        id=equipment.id,
        name=equipment.name,
        description=equipment.description,
        is_active=equipment.is_active,
        station_count=await EquipmentService.station_count(db, equipment.id),
        created_at=equipment.created_at,
    )


@router.get("", response_model=ApiResponse[list[EquipmentResponse]])
async def list_equipment(
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items = await EquipmentService.list_equipment(db, include_inactive)
    data = [await _equipment_to_response(db, e) for e in items]
    return ApiResponse(data=data, meta=Meta.whole_list(data))


@router.get("/export")
async def export_equipment(
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items = await EquipmentService.list_equipment(db, include_inactive=True)
    rows = [
        [e.id, e.name, e.description, "Yes" if e.is_active else "No", await EquipmentService.station_count(db, e.id)]
        for e in items
    ]
    return csv_download("equipment", ["ID", "Name", "Description", "Active", "Stations"], rows)


@router.post("", response_model=ApiResponse[EquipmentResponse], status_code=201)
async def create_equipment(
    body: EquipmentCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    equipment = await EquipmentService.create(db, body)
    return ApiResponse(data=await _equipment_to_response(db, equipment))


@router.get("/{equipment_id}", response_model=ApiResponse[EquipmentResponse])
async def get_equipment(
    equipment_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    equipment = await EquipmentService.get(db, equipment_id)
    return ApiResponse(data=await _equipment_to_response(db, equipment))


@router.patch("/{equipment_id}", response_model=ApiResponse[EquipmentResponse])
async def update_equipment(
    equipment_id: UUID,
    body: EquipmentUpdate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    equipment = await EquipmentService.update(db, equipment_id, body)
    return ApiResponse(data=await _equipment_to_response(db, equipment))


@router.delete("/{equipment_id}", response_model=ApiResponse[EquipmentResponse])
async def delete_equipment(
    equipment_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    equipment = await EquipmentService.deactivate(db, equipment_id)
    return ApiResponse(data=await _equipment_to_response(db, equipment))
