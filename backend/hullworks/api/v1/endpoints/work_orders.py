"""HULLWORKS MES — Work order endpoints: planning, lifecycle, versions, stage events, notes."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import (
    PERM_STAGES_LOG,
    PERM_WORK_ORDERS_READ,
    CurrentUser,
    get_db,
    require_permission,
    require_supervisor,
)
from hullworks.core.responses import success_response
from hullworks.models.work_order import WOStageLog, WorkOrder, WorkOrderNote
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.schemas.work_order import (
    CostEstimateResponse,
    CurrentStage,
    HoldRequest,
    NoteCreate,
    NoteResponse,
    RestoreRequest,
    StageCompleteRequest,
    StageEventRequest,
    StageEventResponse,
    StageLogResponse,
    VersionCreateRequest,
    WorkOrderCreate,
    WorkOrderResponse,
    WorkOrderUpdate,
    WorkOrderVersionResponse,
)
from hullworks.services.dashboard_service import DashboardService
from hullworks.services.note_service import NoteService
from hullworks.services.routing_service import enabled_stages, stage_at
from hullworks.services.stage_service import StageService
from hullworks.services.work_order_service import WorkOrderService
from hullworks.services.work_orders.date_utils import format_date_only

router = APIRouter()

require_reader = require_permission(PERM_WORK_ORDERS_READ)
require_operator = require_permission(PERM_STAGES_LOG)


def _order_to_response(order: WorkOrder) -> WorkOrderResponse:
    stage = stage_at(order.routing_version, order.current_stage_index)
    current = None
    if stage is not None:
        work_center = stage.work_center
        department = work_center.department if work_center else None
        current = CurrentStage(
            id=stage.id,
            code=stage.code,
            name=stage.name,
            sequence=stage.sequence,
            work_center_id=stage.work_center_id,
            work_center_name=work_center.name if work_center else None,
            department_id=department.id if department else None,
            department_name=department.name if department else None,
            standard_stage_seconds=stage.standard_stage_seconds,
        )
    return WorkOrderResponse(
        id=order.id,
        number=order.number,
        hull_id=order.hull_id,
        product_sku=order.product_sku,
        qty=order.qty,
        status=order.status,
        priority=order.priority,
        planned_start_date=format_date_only(order.planned_start_date),
        planned_finish_date=format_date_only(order.planned_finish_date),
        current_stage_index=order.current_stage_index,
        routing_version_id=order.routing_version_id,
        spec_snapshot=order.spec_snapshot,
        current_stage=current,
        total_stages=len(enabled_stages(order.routing_version)),
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _log_to_response(log: WOStageLog) -> StageLogResponse:
    return StageLogResponse(
        id=log.id,
        work_order_id=log.work_order_id,
        routing_stage_id=log.routing_stage_id,
        station_id=log.station_id,
        user_id=log.user_id,
        event=log.event,
        good_qty=log.good_qty,
        scrap_qty=log.scrap_qty,
        note=log.note,
        hourly_rate_snapshot=float(log.hourly_rate_snapshot) if log.hourly_rate_snapshot is not None else None,
        created_at=log.created_at,
    )


def note_to_response(note: WorkOrderNote) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        work_order_id=note.work_order_id,
        user_id=note.user_id,
        author_email=note.user.email if note.user else None,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def _selected_department(department_id: UUID | None, user: CurrentUser) -> UUID | None:
    return department_id or user.department_id


@router.get("", response_model=ApiResponse[list[WorkOrderResponse]])
async def list_work_orders(
    status_filter: str | None = Query(None, alias="status", description="Filter by status (e.g. RELEASED, HOLD)"),
    search: str | None = Query(None, description="Matches number, hull or SKU"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await WorkOrderService.list_work_orders(db, status_filter, search, page, page_size)
    return ApiResponse(
        data=[_order_to_response(o) for o in orders],
        meta=Meta(page=page, page_size=page_size, total_count=total),
    )


@router.post("", response_model=ApiResponse[WorkOrderResponse], status_code=201)
async def create_work_order(
    body: WorkOrderCreate,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    """Create a PLANNED work order bound to a routing version; records version 1."""
    order = await WorkOrderService.create(db, body, actor_id=user.id)
    return ApiResponse(data=_order_to_response(order))


@router.get("/find")
async def find_work_order(
    query: str = Query("", description="Work order number or hull id"),
    department_id: UUID | None = Query(None, alias="departmentId"),
    user: CurrentUser = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    """Operator console lookup: the order, its current stage with stations, and the last event."""
    found = await StageService.find_for_console(db, query, _selected_department(department_id, user))
    work_center = found.stage.work_center
    last_event = None
    if found.last_log is not None:
        log = found.last_log
        last_event = {
            "event": log.event,
            "created_at": log.created_at.isoformat() if log.created_at else None,
            "station_name": found.last_station.name if found.last_station else None,
            "user_email": log.user.email if log.user else None,
            "note": log.note,
            "good_qty": log.good_qty,
            "scrap_qty": log.scrap_qty,
        }
    return success_response({
        "work_order": _order_to_response(found.work_order).model_dump(mode="json"),
        "current_stage": {
            "id": str(found.stage.id),
            "code": found.stage.code,
            "name": found.stage.name,
            "sequence": found.stage.sequence,
            "work_center": {
                "id": str(work_center.id),
                "name": work_center.name,
                "department_id": str(work_center.department_id),
            },
            "stations": [{"id": str(s.id), "code": s.code, "name": s.name} for s in found.stations],
        },
        "last_event": last_event,
        "enabled_stages_count": found.enabled_stage_count,
    })


@router.get("/{work_order_id}")
async def get_work_order(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    """Work order with its stage history. Non-admins only see orders whose current stage is in their department."""
    order = await WorkOrderService.get(db, work_order_id)
    if not user.is_admin and user.department_id:
        stage = stage_at(order.routing_version, order.current_stage_index)
        if stage is not None and stage.work_center.department_id != user.department_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Work order not in your department")
    logs = await StageService.list_logs(db, work_order_id)
    return success_response({
        **_order_to_response(order).model_dump(mode="json"),
        "stage_logs": [_log_to_response(log).model_dump(mode="json") for log in logs],
    })


@router.patch("/{work_order_id}")
async def update_work_order(
    work_order_id: UUID,
    body: WorkOrderUpdate,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order, changes = await WorkOrderService.update(db, work_order_id, body, actor_id=user.id)
    return success_response(_order_to_response(order).model_dump(mode="json"), meta={"changes": changes})


# ── Lifecycle ───────────────────────────────────────────────────────────────
@router.post("/{work_order_id}/release", response_model=ApiResponse[WorkOrderResponse])
async def release_work_order(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order = await WorkOrderService.release(db, work_order_id, actor_id=user.id)
    return ApiResponse(data=_order_to_response(order))


@router.post("/{work_order_id}/hold")
async def hold_work_order(
    work_order_id: UUID,
    body: HoldRequest,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order, previous_status = await WorkOrderService.hold(db, work_order_id, body.reason, actor_id=user.id)
    return success_response(
        _order_to_response(order).model_dump(mode="json"),
        meta={"previous_status": previous_status},
    )


@router.post("/{work_order_id}/unhold", response_model=ApiResponse[WorkOrderResponse])
async def unhold_work_order(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order = await WorkOrderService.unhold(db, work_order_id, actor_id=user.id)
    return ApiResponse(data=_order_to_response(order))


@router.post("/{work_order_id}/cancel", response_model=ApiResponse[WorkOrderResponse])
async def cancel_work_order(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order = await WorkOrderService.cancel(db, work_order_id, actor_id=user.id)
    return ApiResponse(data=_order_to_response(order))


@router.post("/{work_order_id}/uncancel", response_model=ApiResponse[WorkOrderResponse])
async def uncancel_work_order(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    """Return a cancelled order to PLANNED."""
    order = await WorkOrderService.uncancel(db, work_order_id, actor_id=user.id)
    return ApiResponse(data=_order_to_response(order))


# ── Versions ────────────────────────────────────────────────────────────────
@router.get("/{work_order_id}/versions", response_model=ApiResponse[list[WorkOrderVersionResponse]])
async def list_work_order_versions(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    versions = await WorkOrderService.list_versions(db, work_order_id)
    return ApiResponse(data=[WorkOrderVersionResponse.model_validate(v) for v in versions])


@router.post("/{work_order_id}/versions", response_model=ApiResponse[WorkOrderVersionResponse], status_code=201)
async def create_work_order_version(
    work_order_id: UUID,
    body: VersionCreateRequest,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    version = await WorkOrderService.create_version(db, work_order_id, body.reason, actor_id=user.id)
    return ApiResponse(data=WorkOrderVersionResponse.model_validate(version))


@router.post("/{work_order_id}/restore", response_model=ApiResponse[WorkOrderResponse])
async def restore_work_order_version(
    work_order_id: UUID,
    body: RestoreRequest,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order = await WorkOrderService.restore_version(db, work_order_id, body.version_id, actor_id=user.id)
    return ApiResponse(data=_order_to_response(order))


@router.get("/{work_order_id}/cost-estimate", response_model=ApiResponse[CostEstimateResponse])
async def work_order_cost_estimate(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    order = await WorkOrderService.get(db, work_order_id)
    return ApiResponse(data=CostEstimateResponse(**await DashboardService.cost_estimate(db, order)))


# ── Stage events (operator console) ─────────────────────────────────────────
@router.post("/{work_order_id}/start", response_model=ApiResponse[StageEventResponse])
async def start_stage(
    work_order_id: UUID,
    body: StageEventRequest,
    department_id: UUID | None = Query(None, alias="departmentId"),
    user: CurrentUser = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    order, log = await StageService.start(
        db, work_order_id, body.station_id, user.id, _selected_department(department_id, user), note=body.note,
    )
    return ApiResponse(data=StageEventResponse(work_order=_order_to_response(order), log=_log_to_response(log)))


@router.post("/{work_order_id}/pause", response_model=ApiResponse[StageEventResponse])
async def pause_stage(
    work_order_id: UUID,
    body: StageEventRequest,
    department_id: UUID | None = Query(None, alias="departmentId"),
    user: CurrentUser = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    order, log = await StageService.pause(
        db, work_order_id, body.station_id, user.id, _selected_department(department_id, user), note=body.note,
    )
    return ApiResponse(data=StageEventResponse(work_order=_order_to_response(order), log=_log_to_response(log)))


@router.post("/{work_order_id}/complete", response_model=ApiResponse[StageEventResponse])
async def complete_stage(
    work_order_id: UUID,
    body: StageCompleteRequest,
    department_id: UUID | None = Query(None, alias="departmentId"),
    user: CurrentUser = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
):
    order, log = await StageService.complete(
        db, work_order_id, body.station_id, user.id, _selected_department(department_id, user),
        good_qty=body.good_qty, scrap_qty=body.scrap_qty, note=body.note,
    )
    return ApiResponse(data=StageEventResponse(work_order=_order_to_response(order), log=_log_to_response(log)))


# ── Notes ───────────────────────────────────────────────────────────────────
@router.get("/{work_order_id}/notes", response_model=ApiResponse[list[NoteResponse]])
async def list_work_order_notes(
    work_order_id: UUID,
    user: CurrentUser = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    notes = await NoteService.list_notes(db, work_order_id)
    return ApiResponse(data=[note_to_response(n) for n in notes])


@router.post("/{work_order_id}/notes", response_model=ApiResponse[NoteResponse], status_code=201)
async def create_work_order_note(
    work_order_id: UUID,
    body: NoteCreate,
    user: CurrentUser = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    note = await NoteService.create(db, work_order_id, user.id, body.content)
    return ApiResponse(data=note_to_response(note))
