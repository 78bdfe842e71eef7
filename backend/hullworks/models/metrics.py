"""HULLWORKS MES — Station labor metrics, one row per (station, period_start)."""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from hullworks.db.base import Base, utcnow


class StationMetrics(Base):
    __tablename__ = "station_metrics"
    __table_args__ = (UniqueConstraint("station_id", "period_start", name="uq_station_metrics_station_period"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    station_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stations.id", ondelete="CASCADE"), nullable=False, index=True)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    weighted_average_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=0)
    total_hours_worked: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=0)
    total_labor_cost: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=0)
    unique_operator_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
