"""HULLWORKS MES — Admin user endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_admin
from hullworks.models.user import User
from hullworks.schemas.admin import (
    PayRateChange,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserStationMembership,
    UserUpdate,
)
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.services.export_service import csv_download
from hullworks.services.user_service import UserService

router = APIRouter()


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        department_id=user.department_id,
        department_name=user.department.name if user.department else None,
        hourly_rate=float(user.hourly_rate) if user.hourly_rate is not None else None,
        shift_schedule=user.shift_schedule,
        is_active=user.is_active,
        created_at=user.created_at,
    )


@router.get("", response_model=ApiResponse[list[UserResponse]])
async def list_users(
    role: str | None = Query(None),
    department_id: UUID | None = Query(None),
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await UserService.list_users(db, role, department_id, include_inactive)
    data = [_user_to_response(u) for u in users]
    return ApiResponse(data=data, meta=Meta.whole_list(data))


@router.get("/export")
async def export_users(
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await UserService.list_users(db, include_inactive=True)
    rows = [
        [
            u.id,
            u.email,
            u.role,
            u.department.name if u.department else None,
            u.hourly_rate,
            "Yes" if u.is_active else "No",
            u.created_at.isoformat(),
        ]
        for u in users
    ]
    return csv_download("users", ["ID", "Email", "Role", "Department", "Hourly Rate", "Active", "Created At"], rows)


@router.post("", response_model=ApiResponse[UserResponse], status_code=201)
async def create_user(
    body: UserCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    created = await UserService.create(db, body, actor_id=user.id)
    return ApiResponse(data=_user_to_response(created))


@router.get("/{user_id}", response_model=ApiResponse[UserDetailResponse])
async def get_user(
    user_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """User with active station memberships and the last 10 pay-rate changes."""
    record = await UserService.get(db, user_id)
    stations = await UserService.memberships(db, user_id)
    history = await UserService.rate_history(db, user_id, limit=10)
    return ApiResponse(data=UserDetailResponse(
        **_user_to_response(record).model_dump(),
        stations=[UserStationMembership(station_id=s.id, station_code=s.code, station_name=s.name) for s in stations],
        pay_rate_history=[
            PayRateChange(
                id=h.id,
                old_rate=float(h.old_rate) if h.old_rate is not None else None,
                new_rate=float(h.new_rate) if h.new_rate is not None else None,
                changed_by=h.changed_by,
                reason=h.reason,
                created_at=h.created_at,
            )
            for h in history
        ],
    ))


@router.patch("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserService.update(db, user_id, body, actor_id=user.id)
    return ApiResponse(data=_user_to_response(updated))


@router.delete("/{user_id}", response_model=ApiResponse[UserResponse])
async def delete_user(
    user_id: UUID,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete; also ends the user's station memberships."""
    record = await UserService.deactivate(db, user_id, actor_id=user.id)
    return ApiResponse(data=_user_to_response(record))
