"""HULLWORKS MES — Routing version schemas."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class RoutingStageIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    sequence: int = Field(..., ge=1)
    enabled: bool = True
    work_center_id: UUID
    standard_stage_seconds: int = Field(0, ge=0)


class RoutingCloneRequest(BaseModel):
    source_routing_version_id: UUID | None = None
    model: str = Field(..., min_length=1, max_length=100)
    trim: str | None = Field(None, max_length=100)
    features: dict[str, Any] | None = None
    stages: list[RoutingStageIn] = Field(..., min_length=1)


class RoutingStageResponse(BaseModel):
    id: UUID
    code: str
    name: str
    sequence: int
    enabled: bool
    work_center_id: UUID
    work_center_name: str | None = None
    department_id: UUID | None = None
    department_name: str | None = None
    standard_stage_seconds: int


class RoutingVersionResponse(BaseModel):
    id: UUID
    model: str
    trim: str | None
    version: int
    status: str
    features_json: dict[str, Any] | None = None
    released_at: datetime | None = None
    created_at: datetime | None = None
    stages: list[RoutingStageResponse]
