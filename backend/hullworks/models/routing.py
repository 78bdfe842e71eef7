"""HULLWORKS MES — Routing version and stage models.

A routing version is the ordered list of production stages a hull follows.
Once a work order references a version it is never edited; changes are made
by cloning a new version.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hullworks.db.base import Base, JSONType, utcnow


class RoutingVersionStatus(str, Enum):
    DRAFT = "DRAFT"
    RELEASED = "RELEASED"


class RoutingVersion(Base):
    __tablename__ = "routing_versions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    model: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    trim: Mapped[str | None] = mapped_column(String(100), nullable=True)
    features_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=RoutingVersionStatus.DRAFT.value)
    released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    stages: Mapped[list["RoutingStage"]] = relationship(
        "RoutingStage",
        back_populates="routing_version",
        cascade="all, delete-orphan",
        order_by="RoutingStage.sequence",
        lazy="selectin",
    )


class RoutingStage(Base):
    __tablename__ = "routing_stages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    routing_version_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("routing_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    work_center_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_centers.id", ondelete="RESTRICT"), nullable=False, index=True)
    standard_stage_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    routing_version: Mapped["RoutingVersion"] = relationship("RoutingVersion", back_populates="stages")
    work_center: Mapped["WorkCenter"] = relationship("WorkCenter", lazy="selectin")  # noqa: F821
