"""HULLWORKS MES — Work order, version snapshot, stage log and note models."""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hullworks.db.base import Base, JSONType, utcnow


class WOStatus(str, Enum):
    PLANNED = "PLANNED"
    RELEASED = "RELEASED"
    IN_PROGRESS = "IN_PROGRESS"
    HOLD = "HOLD"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class WOPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class StageEvent(str, Enum):
    START = "START"
    PAUSE = "PAUSE"
    COMPLETE = "COMPLETE"


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    hull_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=WOStatus.PLANNED.value, index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=WOPriority.NORMAL.value)
    planned_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    planned_finish_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    current_stage_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    spec_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    routing_version_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("routing_versions.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now())

    routing_version: Mapped["RoutingVersion"] = relationship("RoutingVersion", lazy="selectin")  # noqa: F821


class WorkOrderVersion(Base):
    """Captured copy of a work order's state; see snapshot_metadata for the field list."""

    __tablename__ = "work_order_versions"
    __table_args__ = (UniqueConstraint("work_order_id", "version_number", name="uq_work_order_versions_number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    snapshot_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    schema_hash: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class WOStageLog(Base):
    """Append-only START/PAUSE/COMPLETE record. Rows are never updated."""

    __tablename__ = "wo_stage_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    routing_stage_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("routing_stages.id", ondelete="RESTRICT"), nullable=False)
    station_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stations.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    event: Mapped[str] = mapped_column(String(20), nullable=False)
    good_qty: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scrap_qty: Mapped[int | None] = mapped_column(Integer, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate_snapshot: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    user: Mapped["User"] = relationship("User", lazy="selectin")  # noqa: F821


class WorkOrderNote(Base):
    __tablename__ = "work_order_notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now())

    user: Mapped["User"] = relationship("User", lazy="selectin")  # noqa: F821
