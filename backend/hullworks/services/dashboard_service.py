"""HULLWORKS MES — DashboardService: supervisor WIP board, department queues, labor cost estimates."""
import logging
from collections import Counter
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.models.metrics import StationMetrics
from hullworks.models.organization import Station, WorkCenter
from hullworks.models.routing import RoutingStage, RoutingVersion
from hullworks.models.user import User
from hullworks.models.work_order import WOPriority, WOStageLog, WOStatus, WorkOrder
from hullworks.services.routing_service import enabled_stages, stage_at
from hullworks.services.work_orders.date_utils import format_date_only

logger = logging.getLogger(__name__)

DASHBOARD_STATUSES = [
    WOStatus.PLANNED.value,
    WOStatus.RELEASED.value,
    WOStatus.IN_PROGRESS.value,
    WOStatus.HOLD.value,
    WOStatus.COMPLETED.value,
]
BACKLOG_STATUSES = {WOStatus.PLANNED.value, WOStatus.RELEASED.value, WOStatus.HOLD.value}
QUEUE_STATUSES = [WOStatus.RELEASED.value, WOStatus.IN_PROGRESS.value]
SORTABLE_FIELDS = {"created_at", "priority", "planned_start_date", "planned_finish_date", "status", "number"}

_PRIORITY_RANK = {p.value: i for i, p in enumerate(WOPriority)}


def current_stage_summary(work_order: WorkOrder) -> dict[str, Any] | None:
    stage = stage_at(work_order.routing_version, work_order.current_stage_index)
    if stage is None:
        return None
    work_center = stage.work_center
    department = work_center.department if work_center else None
    return {
        "id": str(stage.id),
        "code": stage.code,
        "name": stage.name,
        "sequence": stage.sequence,
        "work_center": {"id": str(work_center.id), "name": work_center.name} if work_center else None,
        "department": {"id": str(department.id), "name": department.name} if department else None,
    }


def build_kanban_columns(orders: list[dict[str, Any]], work_centers: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Group serialized orders into board columns.

    Backlog holds PLANNED/RELEASED/HOLD, then one column per active work center
    for IN_PROGRESS orders (in the given order), an Unassigned column only when
    an in-progress order has no known work center, then Completed.
    """
    backlog = [o for o in orders if o["status"] in BACKLOG_STATUSES]
    completed = [o for o in orders if o["status"] == WOStatus.COMPLETED.value]
    in_progress = [o for o in orders if o["status"] == WOStatus.IN_PROGRESS.value]

    columns = [{"id": "backlog", "title": "Backlog", "work_orders": backlog}]
    known_ids = set()
    for wc in work_centers:
        known_ids.add(wc["id"])
        columns.append({
            "id": wc["id"],
            "title": wc["name"],
            "department": wc.get("department_name"),
            "work_orders": [
                o for o in in_progress
                if o.get("current_stage") and o["current_stage"]["work_center"]
                and o["current_stage"]["work_center"]["id"] == wc["id"]
            ],
        })

    unassigned = [
        o for o in in_progress
        if not o.get("current_stage")
        or not o["current_stage"]["work_center"]
        or o["current_stage"]["work_center"]["id"] not in known_ids
    ]
    if unassigned:
        columns.append({"id": "unassigned", "title": "Unassigned", "work_orders": unassigned})

    columns.append({"id": "completed", "title": "Completed", "work_orders": completed})
    return columns


async def _last_events(db: AsyncSession, work_order_ids: list[UUID]) -> dict[UUID, dict[str, Any]]:
    if not work_order_ids:
        return {}
    rows = (await db.execute(
        select(WOStageLog, Station.code, User.email)
        .join(Station, WOStageLog.station_id == Station.id)
        .join(User, WOStageLog.user_id == User.id)
        .where(WOStageLog.work_order_id.in_(work_order_ids))
        .order_by(WOStageLog.created_at.desc())
    )).all()
    latest: dict[UUID, dict[str, Any]] = {}
    for log, station_code, email in rows:
        if log.work_order_id not in latest:
            latest[log.work_order_id] = {
                "event": log.event,
                "time": log.created_at.isoformat(),
                "user": email,
                "station": station_code,
            }
    return latest


def _board_row(work_order: WorkOrder, last_event: dict[str, Any] | None) -> dict[str, Any]:
    return {
        "id": str(work_order.id),
        "number": work_order.number,
        "hull_id": work_order.hull_id,
        "product_sku": work_order.product_sku,
        "model": work_order.routing_version.model if work_order.routing_version else None,
        "status": work_order.status,
        "priority": work_order.priority,
        "qty": work_order.qty,
        "planned_start_date": format_date_only(work_order.planned_start_date),
        "planned_finish_date": format_date_only(work_order.planned_finish_date),
        "current_stage_index": work_order.current_stage_index,
        "total_stages": len(enabled_stages(work_order.routing_version)),
        "current_stage": current_stage_summary(work_order),
        "last_event": last_event,
        "created_at": work_order.created_at.isoformat() if work_order.created_at else None,
    }


class DashboardService:

    @staticmethod
    async def supervisor_dashboard(
        db: AsyncSession,
        search: str | None = None,
        statuses: list[str] | None = None,
        priorities: list[str] | None = None,
        model: str | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> dict[str, Any]:
        query = select(WorkOrder).join(RoutingVersion, WorkOrder.routing_version_id == RoutingVersion.id)
        query = query.where(WorkOrder.status.in_([s.upper() for s in statuses] if statuses else DASHBOARD_STATUSES))
        if priorities:
            query = query.where(WorkOrder.priority.in_([p.upper() for p in priorities]))
        if search:
            pattern = f"%{search}%"
            query = query.where(
                WorkOrder.number.ilike(pattern)
                | WorkOrder.hull_id.ilike(pattern)
                | WorkOrder.product_sku.ilike(pattern)
                | RoutingVersion.model.ilike(pattern)
            )
        if model:
            query = query.where(RoutingVersion.model.ilike(f"%{model}%"))

        work_orders = list((await db.scalars(query.order_by(WorkOrder.created_at.desc()))).all())

        if sort_by in SORTABLE_FIELDS:
            reverse = sort_dir == "desc"
            if sort_by == "priority":
                work_orders.sort(key=lambda wo: _PRIORITY_RANK.get(wo.priority, 0), reverse=reverse)
            else:
                # None values sort last regardless of direction
                present = [wo for wo in work_orders if getattr(wo, sort_by) is not None]
                missing = [wo for wo in work_orders if getattr(wo, sort_by) is None]
                present.sort(key=lambda wo: getattr(wo, sort_by), reverse=reverse)
                work_orders = present + missing

        last_events = await _last_events(db, [wo.id for wo in work_orders])
        rows = [_board_row(wo, last_events.get(wo.id)) for wo in work_orders]

        work_centers = (await db.scalars(
            select(WorkCenter).where(WorkCenter.is_active == True).order_by(WorkCenter.name)  # noqa: E712
        )).all()
        # Columns follow routing order: each work center's earliest enabled stage sequence
        first_sequence: dict[UUID, int] = {}
        for wo in work_orders:
            for stage in enabled_stages(wo.routing_version):
                seq = first_sequence.get(stage.work_center_id)
                if seq is None or stage.sequence < seq:
                    first_sequence[stage.work_center_id] = stage.sequence
        ordered_centers = sorted(work_centers, key=lambda wc: (first_sequence.get(wc.id, 10**6), wc.name))
        center_dicts = [
            {"id": str(wc.id), "name": wc.name, "department_name": wc.department.name if wc.department else None}
            for wc in ordered_centers
        ]

        counts = Counter(wo.status for wo in work_orders)
        return {
            "work_orders": rows,
            "status_counts": {s: counts.get(s, 0) for s in DASHBOARD_STATUSES},
            "columns": build_kanban_columns(rows, center_dicts),
            "total": len(rows),
        }

    @staticmethod
    async def department_queue(db: AsyncSession, department_id: UUID) -> list[dict[str, Any]]:
        """RELEASED / IN_PROGRESS orders whose current stage is owned by the department."""
        work_orders = (await db.scalars(
            select(WorkOrder).where(WorkOrder.status.in_(QUEUE_STATUSES)).order_by(WorkOrder.created_at.asc())
        )).all()
        queue = []
        for wo in work_orders:
            stage = stage_at(wo.routing_version, wo.current_stage_index)
            if stage is None or stage.work_center.department_id != department_id:
                continue
            queue.append(wo)
        queue.sort(key=lambda wo: -_PRIORITY_RANK.get(wo.priority, 0))
        last_events = await _last_events(db, [wo.id for wo in queue])
        return [_board_row(wo, last_events.get(wo.id)) for wo in queue]

    @staticmethod
    async def _stage_rate(db: AsyncSession, stage: RoutingStage) -> tuple[str | None, str, float]:
        """(station code, rate source, hourly rate) for the first active station of the stage's work center."""
        station = await db.scalar(
            select(Station)
            .where(Station.work_center_id == stage.work_center_id, Station.is_active == True)  # noqa: E712
            .order_by(Station.code)
            .limit(1)
        )
        if station is None:
            return None, "none", 0.0
        metrics = await db.scalar(
            select(StationMetrics)
            .where(StationMetrics.station_id == station.id)
            .order_by(StationMetrics.period_start.desc(), StationMetrics.calculated_at.desc())
            .limit(1)
        )
        if metrics is not None:
            return station.code, "metrics", float(metrics.weighted_average_rate)
        if station.default_pay_rate is not None:
            return station.code, "default_pay_rate", float(station.default_pay_rate)
        return station.code, "none", 0.0

    @staticmethod
    async def cost_estimate(db: AsyncSession, work_order: WorkOrder) -> dict[str, Any]:
        lines = []
        total_hours = 0.0
        total_cost = 0.0
        for stage in enabled_stages(work_order.routing_version):
            station_code, source, rate = await DashboardService._stage_rate(db, stage)
            hours = stage.standard_stage_seconds / 3600
            cost = hours * rate
            total_hours += hours
            total_cost += cost
            lines.append({
                "stage_id": stage.id,
                "code": stage.code,
                "name": stage.name,
                "work_center_id": stage.work_center_id,
                "station_code": station_code,
                "rate_source": source,
                "hourly_rate": round(rate, 2),
                "standard_hours": round(hours, 4),
                "estimated_cost": round(cost, 2),
            })
        return {
            "work_order_id": work_order.id,
            "lines": lines,
            "total_standard_hours": round(total_hours, 4),
            "total_estimated_cost": round(total_cost, 2),
        }
