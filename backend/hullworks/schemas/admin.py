"""HULLWORKS MES — Admin CRUD schemas: departments, work centers, stations, equipment, users."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

Role = Literal["ADMIN", "SUPERVISOR", "OPERATOR"]


# ── Departments ─────────────────────────────────────────────────────────────
class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class DepartmentUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None


class DepartmentResponse(BaseModel):
    id: UUID
    name: str
    is_active: bool
    work_center_count: int = 0
    user_count: int = 0
    created_at: datetime | None = None


# ── Work centers ────────────────────────────────────────────────────────────
class WorkCenterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    department_id: UUID


class WorkCenterUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    department_id: UUID | None = None
    is_active: bool | None = None


class WorkCenterResponse(BaseModel):
    id: UUID
    name: str
    department_id: UUID
    department_name: str | None = None
    is_active: bool
    station_count: int = 0
    created_at: datetime | None = None


# ── Stations ────────────────────────────────────────────────────────────────
class StationCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    work_center_id: UUID
    default_pay_rate: Decimal | None = Field(None, ge=0)
    capacity: int | None = Field(None, ge=1)
    target_cycle_time_seconds: int | None = Field(None, ge=1)


class StationUpdate(BaseModel):
    code: str | None = Field(None, min_length=1, max_length=50)
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    work_center_id: UUID | None = None
    default_pay_rate: Decimal | None = Field(None, ge=0)
    capacity: int | None = Field(None, ge=1)
    target_cycle_time_seconds: int | None = Field(None, ge=1)
    is_active: bool | None = None


class StationResponse(BaseModel):
    id: UUID
    code: str
    name: str
    description: str | None
    work_center_id: UUID
    work_center_name: str | None = None
    department_name: str | None = None
    default_pay_rate: float | None
    capacity: int | None
    target_cycle_time_seconds: int | None
    is_active: bool
    member_count: int = 0
    equipment_count: int = 0
    created_at: datetime | None = None


class StationMemberAdd(BaseModel):
    user_id: UUID


class StationMemberResponse(BaseModel):
    id: UUID
    station_id: UUID
    user_id: UUID
    email: str | None = None
    role: str | None = None
    is_active: bool
    created_at: datetime | None = None


class StationEquipmentAssign(BaseModel):
    equipment_id: UUID


class StationEquipmentResponse(BaseModel):
    id: UUID
    station_id: UUID
    equipment_id: UUID
    equipment_name: str | None = None
    created_at: datetime | None = None


class StationMetricsResponse(BaseModel):
    id: UUID
    station_id: UUID
    period_start: datetime
    period_end: datetime
    weighted_average_rate: float
    total_hours_worked: float
    total_labor_cost: float
    unique_operator_count: int
    calculated_at: datetime | None


class StationDetailResponse(StationResponse):
    members: list[StationMemberResponse] = []
    equipment: list[StationEquipmentResponse] = []
    metrics: list[StationMetricsResponse] = []


# ── Equipment ───────────────────────────────────────────────────────────────
class EquipmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class EquipmentUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None


class EquipmentResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_active: bool
    station_count: int = 0
    created_at: datetime | None = None


# ── Users ───────────────────────────────────────────────────────────────────
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role = "OPERATOR"
    department_id: UUID | None = None
    hourly_rate: Decimal | None = Field(None, ge=0)
    shift_schedule: dict[str, Any] | None = None


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8)
    role: Role | None = None
    department_id: UUID | None = None
    hourly_rate: Decimal | None = Field(None, ge=0)
    shift_schedule: dict[str, Any] | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    role: str
    department_id: UUID | None
    department_name: str | None = None
    hourly_rate: float | None
    shift_schedule: dict[str, Any] | None = None
    is_active: bool
    created_at: datetime | None = None


class PayRateChange(BaseModel):
    id: UUID
    old_rate: float | None
    new_rate: float | None
    changed_by: UUID | None
    reason: str | None
    created_at: datetime | None


class UserStationMembership(BaseModel):
    station_id: UUID
    station_code: str
    station_name: str


class UserDetailResponse(UserResponse):
    stations: list[UserStationMembership] = []
    pay_rate_history: list[PayRateChange] = []
