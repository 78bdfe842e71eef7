"""HULLWORKS MES — MetricsService: station labor metrics from stage logs.

Formula: SUM(rate * hours) / SUM(hours) over the operators who worked the
station in a window. Hours come from replaying START -> PAUSE/COMPLETE pairs.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.config import Settings, get_settings
from hullworks.db.base import utcnow
from hullworks.models.metrics import StationMetrics
from hullworks.models.organization import Station
from hullworks.models.user import User
from hullworks.models.work_order import StageEvent, WOStageLog

logger = logging.getLogger(__name__)

TRACKED_EVENTS = (StageEvent.START.value, StageEvent.PAUSE.value, StageEvent.COMPLETE.value)


@dataclass(frozen=True)
class StageLogEntry:
    """The parts of a stage log the replay needs."""

    work_order_id: UUID
    user_id: UUID
    event: str
    created_at: datetime
    hourly_rate: float = 0.0


@dataclass
class StationMetricsResult:
    weighted_average_rate: float
    total_hours_worked: float
    total_labor_cost: float
    unique_operator_count: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "weighted_average_rate": self.weighted_average_rate,
            "total_hours_worked": self.total_hours_worked,
            "total_labor_cost": self.total_labor_cost,
            "unique_operator_count": self.unique_operator_count,
        }


def replay_stage_logs(logs: Iterable[StageLogEntry]) -> StationMetricsResult | None:
    """
    Replay logs (ascending created_at) and aggregate hours and cost per operator.

    One open session per work order. START always (re)opens it. PAUSE or
    COMPLETE by the session's user accrues time since the session start;
    COMPLETE closes the session, PAUSE leaves it open with its original start.
    Events with no matching session are ignored.
    """
    sessions: dict[UUID, StageLogEntry] = {}
    hours_by_user: dict[UUID, float] = {}
    cost_by_user: dict[UUID, float] = {}
    seen_any = False

    for log in logs:
        seen_any = True
        if log.event == StageEvent.START.value:
            sessions[log.work_order_id] = log
            continue
        if log.event not in (StageEvent.PAUSE.value, StageEvent.COMPLETE.value):
            continue

        session = sessions.get(log.work_order_id)
        if session is None or session.user_id != log.user_id:
            continue

        hours = (log.created_at - session.created_at).total_seconds() / 3600
        hours_by_user[session.user_id] = hours_by_user.get(session.user_id, 0.0) + hours
        cost_by_user[session.user_id] = cost_by_user.get(session.user_id, 0.0) + hours * session.hourly_rate

        if log.event == StageEvent.COMPLETE.value:
            del sessions[log.work_order_id]

    if not seen_any:
        return None

    total_hours = sum(hours_by_user.values())
    total_cost = sum(cost_by_user.values())
    if total_hours == 0:
        return None

    return StationMetricsResult(
        weighted_average_rate=total_cost / total_hours,
        total_hours_worked=total_hours,
        total_labor_cost=total_cost,
        unique_operator_count=len(hours_by_user),
    )


def metrics_window(now: datetime, settings: Settings | None = None) -> tuple[datetime, datetime]:
    """Rolling window ending at ``now``; the start is pinned to UTC midnight."""
    settings = settings or get_settings()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start_day = (now.astimezone(timezone.utc) - settings.metrics_window).date()
    return datetime.combine(start_day, time.min, tzinfo=timezone.utc), now


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _rate_of(log: WOStageLog, user: User | None) -> float:
    if log.hourly_rate_snapshot is not None:
        return float(log.hourly_rate_snapshot)
    if user is not None and user.hourly_rate is not None:
        return float(user.hourly_rate)
    return 0.0


class MetricsService:

    @staticmethod
    async def calculate_station_metrics(
        db: AsyncSession,
        station_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> StationMetricsResult | None:
        """Weighted-average labor rate for a station over [period_start, period_end)."""
        rows = (await db.execute(
            select(WOStageLog, User)
            .join(User, WOStageLog.user_id == User.id)
            .where(
                WOStageLog.station_id == station_id,
                WOStageLog.created_at >= period_start,
                WOStageLog.created_at < period_end,
                WOStageLog.event.in_(TRACKED_EVENTS),
            )
            .order_by(WOStageLog.created_at.asc())
        )).all()

        entries = [
            StageLogEntry(
                work_order_id=log.work_order_id,
                user_id=log.user_id,
                event=log.event,
                created_at=_as_utc(log.created_at),
                hourly_rate=_rate_of(log, user),
            )
            for log, user in rows
        ]
        return replay_stage_logs(entries)

    @staticmethod
    async def update_station_metrics(
        db: AsyncSession,
        station_id: UUID,
        now: datetime | None = None,
        settings: Settings | None = None,
    ) -> StationMetrics | None:
        """Recalculate the rolling window for one station and upsert the row keyed by (station, period_start)."""
        period_start, period_end = metrics_window(now or utcnow(), settings)

        metrics = await MetricsService.calculate_station_metrics(db, station_id, period_start, period_end)
        if metrics is None:
            logger.info("No metrics data for station %s", station_id)
            return None

        row = await db.scalar(
            select(StationMetrics).where(
                StationMetrics.station_id == station_id,
                StationMetrics.period_start == period_start,
            )
        )
        if row is None:
            row = StationMetrics(station_id=station_id, period_start=period_start)
            db.add(row)

        row.period_end = period_end
        row.weighted_average_rate = Decimal(str(round(metrics.weighted_average_rate, 4)))
        row.total_hours_worked = Decimal(str(round(metrics.total_hours_worked, 4)))
        row.total_labor_cost = Decimal(str(round(metrics.total_labor_cost, 4)))
        row.unique_operator_count = metrics.unique_operator_count
        row.calculated_at = utcnow()
        await db.flush()
        return row

    @staticmethod
    async def update_all_station_metrics(
        db: AsyncSession,
        now: datetime | None = None,
        settings: Settings | None = None,
    ) -> list[dict[str, Any]]:
        """Recalculate every active station. A failing station is reported, not raised."""
        stations = (await db.execute(
            select(Station.id, Station.code).where(Station.is_active == True).order_by(Station.code)  # noqa: E712
        )).all()

        results: list[dict[str, Any]] = []
        for station_id, code in stations:
            logger.info("Calculating metrics for station %s", code)
            try:
                async with db.begin_nested():
                    row = await MetricsService.update_station_metrics(db, station_id, now=now, settings=settings)
                results.append({
                    "station_id": str(station_id),
                    "code": code,
                    "success": True,
                    "result": metrics_to_dict(row) if row else None,
                })
            except Exception as exc:
                logger.error("Error calculating metrics for station %s: %s", code, exc, exc_info=True)
                results.append({
                    "station_id": str(station_id),
                    "code": code,
                    "success": False,
                    "error": str(exc),
                })
        return results

    @staticmethod
    async def latest_station_metrics(db: AsyncSession, station_id: UUID, limit: int = 12) -> list[StationMetrics]:
        result = await db.scalars(
            select(StationMetrics)
            .where(StationMetrics.station_id == station_id)
            .order_by(StationMetrics.period_start.desc())
            .limit(limit)
        )
        return list(result.all())


def metrics_to_dict(row: StationMetrics) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "station_id": str(row.station_id),
        "period_start": row.period_start.isoformat(),
        "period_end": row.period_end.isoformat(),
        "weighted_average_rate": float(row.weighted_average_rate),
        "total_hours_worked": float(row.total_hours_worked),
        "total_labor_cost": float(row.total_labor_cost),
        "unique_operator_count": row.unique_operator_count,
        "calculated_at": row.calculated_at.isoformat() if row.calculated_at else None,
    }
