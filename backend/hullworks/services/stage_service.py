"""HULLWORKS MES — StageService: operator console lookup and START / PAUSE / COMPLETE events on the current routing stage."""
import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.db.base import utcnow
from hullworks.models.organization import Station
from hullworks.models.routing import RoutingStage
from hullworks.models.user import User
from hullworks.models.work_order import StageEvent, WOStageLog, WOStatus, WorkOrder
from hullworks.services.routing_service import enabled_stages
from hullworks.services.work_order_service import WorkOrderService

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {WOStatus.RELEASED.value, WOStatus.IN_PROGRESS.value}


@dataclass
class StageContext:
    work_order: WorkOrder
    stage: RoutingStage
    station: Station
    is_last_stage: bool


@dataclass
class ConsoleLookup:
    work_order: WorkOrder
    stage: RoutingStage
    stations: list[Station]
    last_log: WOStageLog | None
    last_station: Station | None
    enabled_stage_count: int


class StageService:

    @staticmethod
    async def _resolve(
        db: AsyncSession,
        work_order_id: UUID,
        station_id: UUID,
        department_id: UUID | None,
    ) -> StageContext:
        """Shared guards for every stage event."""
        if department_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No department specified")

        work_order = await WorkOrderService.get(db, work_order_id)
        if work_order.status == WOStatus.HOLD.value:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Work order is on hold")
        if work_order.status not in ACTIVE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Work order is {work_order.status}; stage events need RELEASED or IN_PROGRESS",
            )

        stages = enabled_stages(work_order.routing_version)
        if not 0 <= work_order.current_stage_index < len(stages):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No current stage found")
        stage = stages[work_order.current_stage_index]

        if stage.work_center.department_id != department_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized for this stage")

        station = await db.scalar(
            select(Station).where(
                Station.id == station_id,
                Station.work_center_id == stage.work_center_id,
                Station.is_active == True,  # noqa: E712
            )
        )
        if not station:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid station for current stage")

        return StageContext(
            work_order=work_order,
            stage=stage,
            station=station,
            is_last_stage=work_order.current_stage_index == len(stages) - 1,
        )

    @staticmethod
    async def _append_log(
        db: AsyncSession,
        ctx: StageContext,
        user_id: UUID,
        event: StageEvent,
        note: str | None = None,
        good_qty: int | None = None,
        scrap_qty: int | None = None,
    ) -> WOStageLog:
        user = await db.scalar(select(User).where(User.id == user_id))
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User no longer exists")

        log = WOStageLog(
            work_order_id=ctx.work_order.id,
            routing_stage_id=ctx.stage.id,
            station_id=ctx.station.id,
            user_id=user.id,
            event=event.value,
            note=note or None,
            good_qty=good_qty,
            scrap_qty=scrap_qty,
            hourly_rate_snapshot=user.hourly_rate,
            created_at=utcnow(),
        )
        db.add(log)
        await db.flush()
        return log

    @staticmethod
    async def start(
        db: AsyncSession,
        work_order_id: UUID,
        station_id: UUID,
        user_id: UUID,
        department_id: UUID | None,
        note: str | None = None,
    ) -> tuple[WorkOrder, WOStageLog]:
        ctx = await StageService._resolve(db, work_order_id, station_id, department_id)
        log = await StageService._append_log(db, ctx, user_id, StageEvent.START, note=note)

        if ctx.work_order.status == WOStatus.RELEASED.value:
            ctx.work_order.status = WOStatus.IN_PROGRESS.value
            ctx.work_order.updated_at = utcnow()
            await db.flush()

        logger.info("Started %s stage %s at station %s", ctx.work_order.number, ctx.stage.code, ctx.station.code)
        return ctx.work_order, log

    @staticmethod
    async def pause(
        db: AsyncSession,
        work_order_id: UUID,
        station_id: UUID,
        user_id: UUID,
        department_id: UUID | None,
        note: str | None = None,
    ) -> tuple[WorkOrder, WOStageLog]:
        ctx = await StageService._resolve(db, work_order_id, station_id, department_id)
        log = await StageService._append_log(db, ctx, user_id, StageEvent.PAUSE, note=note)
        logger.info("Paused %s stage %s at station %s", ctx.work_order.number, ctx.stage.code, ctx.station.code)
        return ctx.work_order, log

    @staticmethod
    async def complete(
        db: AsyncSession,
        work_order_id: UUID,
        station_id: UUID,
        user_id: UUID,
        department_id: UUID | None,
        good_qty: int = 0,
        scrap_qty: int = 0,
        note: str | None = None,
    ) -> tuple[WorkOrder, WOStageLog]:
        """Log COMPLETE, then advance to the next enabled stage or finish the order."""
        if good_qty < 0 or scrap_qty < 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantities must be non-negative")

        ctx = await StageService._resolve(db, work_order_id, station_id, department_id)
        log = await StageService._append_log(
            db, ctx, user_id, StageEvent.COMPLETE, note=note, good_qty=good_qty, scrap_qty=scrap_qty,
        )

        work_order = ctx.work_order
        if ctx.is_last_stage:
            work_order.status = WOStatus.COMPLETED.value
        else:
            work_order.current_stage_index += 1
            work_order.status = WOStatus.RELEASED.value
        work_order.updated_at = utcnow()
        await db.flush()

        logger.info(
            "Completed %s stage %s (good=%s scrap=%s); order now %s",
            work_order.number, ctx.stage.code, good_qty, scrap_qty, work_order.status,
        )
        return work_order, log

    @staticmethod
    async def list_logs(db: AsyncSession, work_order_id: UUID) -> list[WOStageLog]:
        result = await db.scalars(
            select(WOStageLog)
            .where(WOStageLog.work_order_id == work_order_id)
            .order_by(WOStageLog.created_at.desc())
        )
        return list(result.all())

    @staticmethod
    async def find_for_console(db: AsyncSession, query: str, department_id: UUID | None) -> ConsoleLookup:
        """
        Look up an order by number or hull id (case-insensitive) for the operator console.
        The order's current stage must belong to the selected department.
        """
        query = (query or "").strip()
        if not query:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query parameter required")
        if department_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No department specified")

        needle = query.lower()
        work_order = await db.scalar(
            select(WorkOrder)
            .where(or_(func.lower(WorkOrder.number) == needle, func.lower(WorkOrder.hull_id) == needle))
            .order_by(WorkOrder.created_at.desc())
            .limit(1)
        )
        if not work_order:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Work order not found")

        stages = enabled_stages(work_order.routing_version)
        if not 0 <= work_order.current_stage_index < len(stages):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No current stage found")
        stage = stages[work_order.current_stage_index]
        if stage.work_center.department_id != department_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Work order not in selected department")

        stations = list((await db.scalars(
            select(Station)
            .where(Station.work_center_id == stage.work_center_id, Station.is_active == True)  # noqa: E712
            .order_by(Station.code)
        )).all())
        last_log = await db.scalar(
            select(WOStageLog)
            .where(WOStageLog.work_order_id == work_order.id)
            .order_by(WOStageLog.created_at.desc())
            .limit(1)
        )
        last_station = None
        if last_log is not None:
            last_station = await db.scalar(select(Station).where(Station.id == last_log.station_id))

        return ConsoleLookup(
            work_order=work_order,
            stage=stage,
            stations=stations,
            last_log=last_log,
            last_station=last_station,
            enabled_stage_count=len(stages),
        )
