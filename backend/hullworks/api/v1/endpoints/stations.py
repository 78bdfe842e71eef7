"""HULLWORKS MES — Admin station endpoints, including members, equipment and metrics."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin
from hullworks.core.responses import success_response
from hullworks.models.metrics import StationMetrics
from hullworks.models.organization import Station, StationEquipment, StationMember
from hullworks.schemas.admin import (
    StationCreate,
    StationDetailResponse,
    StationEquipmentAssign,
    StationEquipmentResponse,
    StationMemberAdd,
    StationMemberResponse,
    StationMetricsResponse,
    StationResponse,
    StationUpdate,
)
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.services.export_service import csv_download
from hullworks.services.metrics_service import MetricsService
from hullworks.services.organization_service import StationService

router = APIRouter()


async def _station_to_response(db: AsyncSession, station: Station) -> StationResponse:
    members, equipment = await StationService.counts(db, station.id)
    work_center = station.work_center
    return StationResponse(
        id=station.id,
        code=station.code,
        name=station.name,
        description=station.description,
        work_center_id=station.work_center_id,
        work_center_name=work_center.name if work_center else None,
        department_name=work_center.department.name if work_center and work_center.department else None,
        default_pay_rate=float(station.default_pay_rate) if station.default_pay_rate is not None else None,
        capacity=station.capacity,
        target_cycle_time_seconds=station.target_cycle_time_seconds,
        is_active=station.is_active,
        member_count=members,
        equipment_count=equipment,
        created_at=station.created_at,
    )


def _member_to_response(member: StationMember) -> StationMemberResponse:
    return StationMemberResponse(
        id=member.id,
        station_id=member.station_id,
        user_id=member.user_id,
        email=member.user.email if member.user else None,
        role=member.user.role if member.user else None,
        is_active=member.is_active,
        created_at=member.created_at,
    )


def _assignment_to_response(assignment: StationEquipment) -> StationEquipmentResponse:
    return StationEquipmentResponse(
        id=assignment.id,
        station_id=assignment.station_id,
        equipment_id=assignment.equipment_id,
        equipment_name=assignment.equipment.name if assignment.equipment else None,
        created_at=assignment.created_at,
    )


def _metrics_to_response(row: StationMetrics) -> StationMetricsResponse:
    return StationMetricsResponse(
        id=row.id,
        station_id=row.station_id,
        period_start=row.period_start,
        period_end=row.period_end,
        weighted_average_rate=float(row.weighted_average_rate),
        total_hours_worked=float(row.total_hours_worked),
        total_labor_cost=float(row.total_labor_cost),
        unique_operator_count=row.unique_operator_count,
        calculated_at=row.calculated_at,
    )


@router.get("", response_model=ApiResponse[list[StationResponse]])
async def list_stations(
    work_center_id: UUID | None = Query(None),
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stations = await StationService.list_stations(db, work_center_id, include_inactive)
    data = [await _station_to_response(db, s) for s in stations]
    return ApiResponse(data=data, meta=Meta.whole_list(data))


@router.get("/export")
async def export_stations(
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stations = await StationService.list_stations(db, include_inactive=True)
    rows = []
    for s in stations:
        members, equipment = await StationService.counts(db, s.id)
        rows.append([
            s.id,
            s.code,
            s.name,
            s.work_center.name if s.work_center else None,
            s.default_pay_rate,
            s.capacity,
            s.target_cycle_time_seconds,
            "Yes" if s.is_active else "No",
            members,
            equipment,
        ])
    return csv_download(
        "stations",
        ["ID", "Code", "Name", "Work Center", "Default Pay Rate", "Capacity", "Target Cycle Time (s)", "Active", "Members", "Equipment"],
        rows,
    )


@router.post("", response_model=ApiResponse[StationResponse], status_code=201)
async def create_station(
    body: StationCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    station = await StationService.create(db, body)
    return ApiResponse(data=await _station_to_response(db, station))


@router.get("/{station_id}", response_model=ApiResponse[StationDetailResponse])
async def get_station(
    station_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Station with active members, assigned equipment and the last 12 metrics periods."""
    station = await StationService.get(db, station_id)
    base = await _station_to_response(db, station)
    members = await StationService.list_members(db, station_id)
    equipment = await StationService.list_equipment(db, station_id)
    metrics = await MetricsService.latest_station_metrics(db, station_id, limit=12)
    return ApiResponse(data=StationDetailResponse(
        **base.model_dump(),
        members=[_member_to_response(m) for m in members],
        equipment=[_assignment_to_response(a) for a in equipment],
        metrics=[_metrics_to_response(m) for m in metrics],
    ))


@router.patch("/{station_id}", response_model=ApiResponse[StationResponse])
async def update_station(
    station_id: UUID,
    body: StationUpdate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    station = await StationService.update(db, station_id, body)
    return ApiResponse(data=await _station_to_response(db, station))


@router.delete("/{station_id}", response_model=ApiResponse[StationResponse])
async def delete_station(
    station_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    station = await StationService.deactivate(db, station_id)
    return ApiResponse(data=await _station_to_response(db, station))


# ── Members ─────────────────────────────────────────────────────────────────
@router.get("/{station_id}/members", response_model=ApiResponse[list[StationMemberResponse]])
async def list_station_members(
    station_id: UUID,
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    members = await StationService.list_members(db, station_id, include_inactive)
    return ApiResponse(data=[_member_to_response(m) for m in members])


@router.post("/{station_id}/members", response_model=ApiResponse[StationMemberResponse], status_code=201)
async def add_station_member(
    station_id: UUID,
    body: StationMemberAdd,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    member = await StationService.add_member(db, station_id, body.user_id)
    return ApiResponse(data=_member_to_response(member))


@router.delete("/{station_id}/members/{user_id}", response_model=ApiResponse[StationMemberResponse])
async def remove_station_member(
    station_id: UUID,
    user_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    member = await StationService.remove_member(db, station_id, user_id)
    return ApiResponse(data=_member_to_response(member))


# ── Equipment ───────────────────────────────────────────────────────────────
@router.get("/{station_id}/equipment", response_model=ApiResponse[list[StationEquipmentResponse]])
async def list_station_equipment(
    station_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    assignments = await StationService.list_equipment(db, station_id)
    return ApiResponse(data=[_assignment_to_response(a) for a in assignments])


@router.post("/{station_id}/equipment", response_model=ApiResponse[StationEquipmentResponse], status_code=201)
async def assign_station_equipment(
    station_id: UUID,
    body: StationEquipmentAssign,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    assignment = await StationService.assign_equipment(db, station_id, body.equipment_id)
    return ApiResponse(data=_assignment_to_response(assignment))


@router.delete("/{station_id}/equipment/{equipment_id}")
async def unassign_station_equipment(
    station_id: UUID,
    equipment_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await StationService.unassign_equipment(db, station_id, equipment_id)
    return success_response({"message": "Equipment unassigned"})


# ── Metrics ─────────────────────────────────────────────────────────────────
@router.post("/{station_id}/recalculate-metrics", response_model=ApiResponse[StationMetricsResponse | None])
async def recalculate_station_metrics(
    station_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Rebuild the rolling-window metrics row now. data is null when the station has no logged work."""
    await StationService.get(db, station_id)
    row = await MetricsService.update_station_metrics(db, station_id)
    return ApiResponse(data=_metrics_to_response(row) if row else None)
