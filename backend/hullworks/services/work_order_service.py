"""HULLWORKS MES — WorkOrderService: creation, planning edits, lifecycle transitions, version snapshots.

Lifecycle: PLANNED -> RELEASED -> IN_PROGRESS -> COMPLETED, with HOLD
reversible to the status it interrupted and CANCELLED reversible to PLANNED.
Stage-by-stage progression lives in StageService.
"""
import logging
import secrets
import string
import time
from datetime import datetime, time as dtime, timezone
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.db.base import utcnow
from hullworks.models.routing import RoutingVersion, RoutingVersionStatus
from hullworks.models.work_order import WOStatus, WorkOrder, WorkOrderVersion
from hullworks.schemas.work_order import WorkOrderCreate, WorkOrderUpdate
from hullworks.services.audit_service import (
    ACTION_CANCEL,
    ACTION_CREATE,
    ACTION_HOLD,
    ACTION_RELEASE,
    ACTION_RESTORE,
    ACTION_UNCANCEL,
    ACTION_UNHOLD,
    ACTION_UPDATE,
    latest_audit,
    log_audit,
)
from hullworks.services.routing_service import RoutingService, enabled_stages
from hullworks.services.work_orders.date_utils import format_date_only, normalize_date_input, parse_date_only_to_utc
from hullworks.services.work_orders.snapshot_metadata import WORK_ORDER_SNAPSHOT_SCHEMA_HASH, build_work_order_snapshot

logger = logging.getLogger(__name__)

MODEL_NAME = "WorkOrder"

HOLD_BLOCKED_STATUSES = {
    WOStatus.PLANNED.value,
    WOStatus.HOLD.value,
    WOStatus.COMPLETED.value,
    WOStatus.CLOSED.value,
    WOStatus.CANCELLED.value,
}
CANCEL_BLOCKED_STATUSES = {WOStatus.COMPLETED.value, WOStatus.CLOSED.value}
EDITABLE_STATUSES = {
    WOStatus.PLANNED.value,
    WOStatus.RELEASED.value,
    WOStatus.IN_PROGRESS.value,
    WOStatus.HOLD.value,
    WOStatus.CANCELLED.value,
}
PLANNING_STATUSES = {WOStatus.PLANNED.value, WOStatus.CANCELLED.value}


def generate_work_order_number() -> str:
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(5))
    return f"WO-{int(time.time() * 1000)}-{suffix}"


def build_spec_snapshot(
    routing_version: RoutingVersion,
    model: str | None,
    trim: str | None,
    features: dict[str, Any] | None,
) -> dict[str, Any]:
    return {
        "model": model or "",
        "trim": trim or "",
        "features": features or {},
        "routingVersionId": str(routing_version.id),
        "stages": [
            {
                "id": str(s.id),
                "code": s.code,
                "name": s.name,
                "sequence": s.sequence,
                "enabled": s.enabled,
                "workCenterId": str(s.work_center_id),
                "standardStageSeconds": s.standard_stage_seconds,
            }
            for s in enabled_stages(routing_version)
        ],
    }


def _today_utc() -> datetime:
    return datetime.combine(utcnow().date(), dtime.min, tzinfo=timezone.utc)


def _parse_planned_date(value: str | None, field: str) -> datetime | None:
    if not value:
        return None
    try:
        return parse_date_only_to_utc(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be in YYYY-MM-DD format")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class WorkOrderService:

    @staticmethod
    async def get(db: AsyncSession, work_order_id: UUID) -> WorkOrder:
        # populate_existing reloads the routing version eagerly for rows already in the session
        work_order = await db.scalar(
            select(WorkOrder).where(WorkOrder.id == work_order_id).execution_options(populate_existing=True)
        )
        if not work_order:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Work order not found")
        return work_order

    @staticmethod
    async def list_work_orders(
        db: AsyncSession,
        status_filter: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[WorkOrder], int]:
        query = select(WorkOrder)
        count_query = select(func.count(WorkOrder.id))
        if status_filter:
            query = query.where(WorkOrder.status == status_filter.upper())
            count_query = count_query.where(WorkOrder.status == status_filter.upper())
        if search:
            pattern = f"%{search}%"
            cond = WorkOrder.number.ilike(pattern) | WorkOrder.hull_id.ilike(pattern) | WorkOrder.product_sku.ilike(pattern)
            query = query.where(cond)
            count_query = count_query.where(cond)

        total = (await db.execute(count_query)).scalar_one()
        result = await db.scalars(
            query.order_by(WorkOrder.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
        )
        return list(result.all()), total

    @staticmethod
    async def _next_version_number(db: AsyncSession, work_order_id: UUID) -> int:
        current = (await db.execute(
            select(func.max(WorkOrderVersion.version_number)).where(WorkOrderVersion.work_order_id == work_order_id)
        )).scalar_one_or_none()
        return (current or 0) + 1

    @staticmethod
    async def record_version(
        db: AsyncSession,
        work_order: WorkOrder,
        reason: str,
        actor_id: UUID | None,
        snapshot: dict[str, Any] | None = None,
    ) -> WorkOrderVersion:
        """Append a WorkOrderVersion stamped with the current snapshot schema hash."""
        version = WorkOrderVersion(
            work_order_id=work_order.id,
            version_number=await WorkOrderService._next_version_number(db, work_order.id),
            snapshot_data=snapshot if snapshot is not None else build_work_order_snapshot(work_order),
            schema_hash=WORK_ORDER_SNAPSHOT_SCHEMA_HASH,
            reason=reason[:255] if reason else reason,
            created_by=actor_id,
        )
        db.add(version)
        await db.flush()
        return version

    @staticmethod
    async def create(db: AsyncSession, body: WorkOrderCreate, actor_id: UUID) -> WorkOrder:
        planned_start = _parse_planned_date(body.planned_start_date, "planned_start_date")
        planned_finish = _parse_planned_date(body.planned_finish_date, "planned_finish_date")

        if planned_start and planned_finish and planned_start >= planned_finish:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Planned start date must be before planned finish date")
        if planned_start and planned_start < _today_utc():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Planned start date must be in the future")

        routing_version = await RoutingService.get_version(db, body.routing_version_id)

        number = body.number or generate_work_order_number()
        if await db.scalar(select(WorkOrder.id).where(WorkOrder.number == number)):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Work order number already exists")

        work_order = WorkOrder(
            number=number,
            hull_id=body.hull_id,
            product_sku=body.product_sku,
            qty=body.qty,
            status=WOStatus.PLANNED.value,
            priority=body.priority,
            planned_start_date=planned_start,
            planned_finish_date=planned_finish,
            routing_version_id=routing_version.id,
            current_stage_index=0,
            spec_snapshot=build_spec_snapshot(
                routing_version,
                body.model or routing_version.model,
                body.trim if body.trim is not None else routing_version.trim,
                body.features if body.features is not None else routing_version.features_json,
            ),
        )
        db.add(work_order)
        await db.flush()
        work_order = await WorkOrderService.get(db, work_order.id)

        await WorkOrderService.record_version(db, work_order, "Initial creation", actor_id)
        await log_audit(
            db, actor_id, ACTION_CREATE, MODEL_NAME, work_order.id,
            after={"number": work_order.number, "hullId": work_order.hull_id, "status": work_order.status},
        )
        logger.info("Created work order %s for hull %s", work_order.number, work_order.hull_id)
        return work_order

    @staticmethod
    async def update(db: AsyncSession, work_order_id: UUID, body: WorkOrderUpdate, actor_id: UUID) -> tuple[WorkOrder, list[str]]:
        """Planning edits. Hull, SKU and quantity are frozen once the order is released."""
        work_order = await WorkOrderService.get(db, work_order_id)
        fields = body.model_fields_set

        try:
            requested_start = normalize_date_input(body.planned_start_date) if "planned_start_date" in fields else None
            requested_finish = normalize_date_input(body.planned_finish_date) if "planned_finish_date" in fields else None
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

        final_start = requested_start if "planned_start_date" in fields else _as_utc(work_order.planned_start_date)
        final_finish = requested_finish if "planned_finish_date" in fields else _as_utc(work_order.planned_finish_date)
        if final_start and final_finish and final_start >= final_finish:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Planned start date must be before planned finish date")

        if work_order.status not in EDITABLE_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Work order can only be edited while active")

        planning = work_order.status in PLANNING_STATUSES
        frozen = {
            "hull_id": "Hull",
            "product_sku": "Product SKU",
            "qty": "Quantity",
        }
        for attr, label in frozen.items():
            value = getattr(body, attr)
            if value is not None and value != getattr(work_order, attr) and not planning:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"{label} cannot be changed once the work order is active",
                )

        changes: list[str] = []
        labels = {"hull_id": "Hull ID", "product_sku": "Product SKU", "qty": "Quantity", "priority": "Priority"}
        for attr, label in labels.items():
            value = getattr(body, attr)
            current = getattr(work_order, attr)
            if value is not None and value != current:
                changes.append(f"{label} changed from {current} to {value}")
                setattr(work_order, attr, value)

        for attr, label, requested in (
            ("planned_start_date", "Planned start date", requested_start),
            ("planned_finish_date", "Planned finish date", requested_finish),
        ):
            if attr not in fields:
                continue
            current = format_date_only(getattr(work_order, attr))
            new = format_date_only(requested)
            if current != new:
                changes.append(f"{label} changed from {current or 'not set'} to {new or 'cleared'}")
                setattr(work_order, attr, requested)

        if not changes:
            return work_order, ["No changes detected"]

        work_order.updated_at = utcnow()
        await db.flush()

        reason = changes[0] if len(changes) == 1 else "Planning details updated: " + " | ".join(changes)
        await WorkOrderService.record_version(db, work_order, reason, actor_id)
        await log_audit(db, actor_id, ACTION_UPDATE, MODEL_NAME, work_order.id, after={"changes": changes})
        return work_order, changes

    @staticmethod
    async def release(db: AsyncSession, work_order_id: UUID, actor_id: UUID) -> WorkOrder:
        work_order = await WorkOrderService.get(db, work_order_id)
        if work_order.status != WOStatus.PLANNED.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Work order must be in PLANNED status to release")

        routing_version = work_order.routing_version
        if routing_version.status == RoutingVersionStatus.DRAFT.value:
            routing_version.status = RoutingVersionStatus.RELEASED.value
            routing_version.released_at = utcnow()

        previous = work_order.spec_snapshot or {}
        spec_snapshot = build_spec_snapshot(
            routing_version,
            previous.get("model"),
            previous.get("trim"),
            previous.get("features"),
        )
        work_order.status = WOStatus.RELEASED.value
        work_order.current_stage_index = 0
        work_order.spec_snapshot = spec_snapshot
        work_order.updated_at = utcnow()
        await db.flush()

        await log_audit(
            db, actor_id, ACTION_RELEASE, MODEL_NAME, work_order.id,
            before={"status": WOStatus.PLANNED.value},
            after={"status": WOStatus.RELEASED.value, "specSnapshot": spec_snapshot},
        )
        logger.info("Released work order %s", work_order.number)
        return work_order

    @staticmethod
    async def hold(db: AsyncSession, work_order_id: UUID, reason: str, actor_id: UUID) -> tuple[WorkOrder, str]:
        reason = (reason or "").strip()
        if not reason:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reason is required")

        work_order = await WorkOrderService.get(db, work_order_id)
        if work_order.status == WOStatus.HOLD.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Work order is already on hold")
        if work_order.status in HOLD_BLOCKED_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot hold a work order in {work_order.status} status",
            )

        previous_status = work_order.status
        work_order.status = WOStatus.HOLD.value
        work_order.updated_at = utcnow()
        await db.flush()

        await log_audit(
            db, actor_id, ACTION_HOLD, MODEL_NAME, work_order.id,
            before={"status": previous_status},
            after={"status": WOStatus.HOLD.value, "reason": reason, "previousStatus": previous_status},
        )
        logger.info("Work order %s placed on hold (was %s)", work_order.number, previous_status)
        return work_order, previous_status

    @staticmethod
    async def unhold(db: AsyncSession, work_order_id: UUID, actor_id: UUID) -> WorkOrder:
        work_order = await WorkOrderService.get(db, work_order_id)
        if work_order.status != WOStatus.HOLD.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Work order is not on hold")

        restore_status = WOStatus.RELEASED.value
        last_hold = await latest_audit(db, MODEL_NAME, work_order.id, ACTION_HOLD)
        if last_hold and last_hold.after and last_hold.after.get("previousStatus"):
            restore_status = last_hold.after["previousStatus"]

        work_order.status = restore_status
        work_order.updated_at = utcnow()
        await db.flush()

        await log_audit(
            db, actor_id, ACTION_UNHOLD, MODEL_NAME, work_order.id,
            before={"status": WOStatus.HOLD.value},
            after={"status": restore_status},
        )
        return work_order

    @staticmethod
    async def cancel(db: AsyncSession, work_order_id: UUID, actor_id: UUID) -> WorkOrder:
        work_order = await WorkOrderService.get(db, work_order_id)
        if work_order.status in CANCEL_BLOCKED_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot cancel completed or closed work orders")
        if work_order.status == WOStatus.CANCELLED.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Work order is already cancelled")

        previous_status = work_order.status
        snapshot = build_work_order_snapshot(work_order, status=WOStatus.CANCELLED.value)
        await WorkOrderService.record_version(db, work_order, "Work order cancelled", actor_id, snapshot=snapshot)

        work_order.status = WOStatus.CANCELLED.value
        work_order.updated_at = utcnow()
        await db.flush()

        await log_audit(
            db, actor_id, ACTION_CANCEL, MODEL_NAME, work_order.id,
            before={"status": previous_status},
            after={"status": WOStatus.CANCELLED.value},
        )
        logger.info("Cancelled work order %s (was %s)", work_order.number, previous_status)
        return work_order

    @staticmethod
    async def uncancel(db: AsyncSession, work_order_id: UUID, actor_id: UUID) -> WorkOrder:
        work_order = await WorkOrderService.get(db, work_order_id)
        if work_order.status != WOStatus.CANCELLED.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only cancelled work orders can be restored to planned")

        snapshot = build_work_order_snapshot(work_order, status=WOStatus.PLANNED.value)
        await WorkOrderService.record_version(
            db, work_order, "Work order uncancelled - returned to PLANNED", actor_id, snapshot=snapshot,
        )

        work_order.status = WOStatus.PLANNED.value
        work_order.updated_at = utcnow()
        await db.flush()

        await log_audit(
            db, actor_id, ACTION_UNCANCEL, MODEL_NAME, work_order.id,
            before={"status": WOStatus.CANCELLED.value},
            after={"status": WOStatus.PLANNED.value},
        )
        return work_order

    @staticmethod
    async def create_version(db: AsyncSession, work_order_id: UUID, reason: str, actor_id: UUID) -> WorkOrderVersion:
        reason = (reason or "").strip()
        if not reason:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reason is required")
        work_order = await WorkOrderService.get(db, work_order_id)
        return await WorkOrderService.record_version(db, work_order, reason, actor_id)

    @staticmethod
    async def list_versions(db: AsyncSession, work_order_id: UUID) -> list[WorkOrderVersion]:
        await WorkOrderService.get(db, work_order_id)
        result = await db.scalars(
            select(WorkOrderVersion)
            .where(WorkOrderVersion.work_order_id == work_order_id)
            .order_by(WorkOrderVersion.version_number.desc())
        )
        return list(result.all())

    @staticmethod
    async def restore_version(db: AsyncSession, work_order_id: UUID, version_id: UUID, actor_id: UUID) -> WorkOrder:
        version = await db.scalar(select(WorkOrderVersion).where(WorkOrderVersion.id == version_id))
        if not version:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Version not found")
        if version.work_order_id != work_order_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Version does not belong to this work order")

        work_order = await WorkOrderService.get(db, work_order_id)
        snapshot = version.snapshot_data or {}
        try:
            work_order.hull_id = snapshot.get("hullId", work_order.hull_id)
            work_order.product_sku = snapshot.get("productSku", work_order.product_sku)
            work_order.qty = snapshot.get("qty", work_order.qty)
            work_order.status = snapshot.get("status", work_order.status)
            work_order.priority = snapshot.get("priority") or work_order.priority
            work_order.planned_start_date = normalize_date_input(snapshot.get("plannedStartDate"))
            work_order.planned_finish_date = normalize_date_input(snapshot.get("plannedFinishDate"))
            work_order.current_stage_index = snapshot.get("currentStageIndex", work_order.current_stage_index)
            work_order.spec_snapshot = snapshot.get("specSnapshot", work_order.spec_snapshot)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Stored snapshot is invalid: {exc}")
        work_order.updated_at = utcnow()
        await db.flush()

        reason = f"Restored from Version {version.version_number}"
        # Stored layout always matches WORK_ORDER_SNAPSHOT_SCHEMA_HASH
        await WorkOrderService.record_version(db, work_order, reason, actor_id)
        await log_audit(
            db, actor_id, ACTION_RESTORE, MODEL_NAME, work_order.id,
            after={"restoredFromVersion": version.version_number, "reason": reason},
        )
        logger.info("Work order %s restored to version %s", work_order.number, version.version_number)
        return work_order
