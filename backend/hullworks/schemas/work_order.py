"""HULLWORKS MES — Work order schemas."""
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

Priority = Literal["LOW", "NORMAL", "HIGH", "CRITICAL"]


class WorkOrderCreate(BaseModel):
    number: str | None = Field(None, max_length=100, description="Generated when omitted")
    hull_id: str = Field(..., min_length=1, max_length=100)
    product_sku: str = Field("", max_length=100)
    qty: int = Field(1, ge=1)
    priority: Priority = "NORMAL"
    routing_version_id: UUID
    model: str | None = Field(None, max_length=100, description="Defaults to the routing version model")
    trim: str | None = Field(None, max_length=100)
    features: dict[str, Any] | None = None
    planned_start_date: str | None = Field(None, description="YYYY-MM-DD")
    planned_finish_date: str | None = Field(None, description="YYYY-MM-DD")


class WorkOrderUpdate(BaseModel):
    hull_id: str | None = Field(None, min_length=1, max_length=100)
    product_sku: str | None = Field(None, min_length=1, max_length=100)
    qty: int | None = Field(None, ge=1)
    priority: Priority | None = None
    planned_start_date: str | None = None
    planned_finish_date: str | None = None


class HoldRequest(BaseModel):
    reason: str = Field(..., max_length=1000)


class VersionCreateRequest(BaseModel):
    reason: str = Field(..., max_length=255)


class RestoreRequest(BaseModel):
    version_id: UUID


class StageEventRequest(BaseModel):
    station_id: UUID
    note: str | None = Field(None, max_length=2000)


class StageCompleteRequest(StageEventRequest):
    good_qty: int = Field(0, ge=0)
    scrap_qty: int = Field(0, ge=0)


class CurrentStage(BaseModel):
    id: UUID
    code: str
    name: str
    sequence: int
    work_center_id: UUID
    work_center_name: str | None = None
    department_id: UUID | None = None
    department_name: str | None = None
    standard_stage_seconds: int


class WorkOrderResponse(BaseModel):
    id: UUID
    number: str
    hull_id: str
    product_sku: str
    qty: int
    status: str
    priority: str
    planned_start_date: str | None
    planned_finish_date: str | None
    current_stage_index: int
    routing_version_id: UUID
    spec_snapshot: dict[str, Any] | None = None
    current_stage: CurrentStage | None = None
    total_stages: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WorkOrderVersionResponse(BaseModel):
    id: UUID
    work_order_id: UUID
    version_number: int
    snapshot_data: dict[str, Any]
    schema_hash: str | None
    reason: str | None
    created_by: UUID | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class StageLogResponse(BaseModel):
    id: UUID
    work_order_id: UUID
    routing_stage_id: UUID
    station_id: UUID
    user_id: UUID
    event: str
    good_qty: int | None
    scrap_qty: int | None
    note: str | None
    hourly_rate_snapshot: float | None
    created_at: datetime | None


class StageEventResponse(BaseModel):
    work_order: WorkOrderResponse
    log: StageLogResponse


class CostEstimateLine(BaseModel):
    stage_id: UUID
    code: str
    name: str
    work_center_id: UUID
    station_code: str | None
    rate_source: Literal["metrics", "default_pay_rate", "none"]
    hourly_rate: float
    standard_hours: float
    estimated_cost: float


class CostEstimateResponse(BaseModel):
    work_order_id: UUID
    lines: list[CostEstimateLine]
    total_standard_hours: float
    total_estimated_cost: float


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class NoteUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class NoteResponse(BaseModel):
    id: UUID
    work_order_id: UUID
    user_id: UUID
    author_email: str | None = None
    content: str
    created_at: datetime | None
    updated_at: datetime | None
