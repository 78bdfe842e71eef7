"""HULLWORKS MES — UserService: admin user management and pay-rate history."""
import logging
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.core.security import get_password_hash, verify_password
from hullworks.db.base import utcnow
from hullworks.models.organization import Station, StationMember
from hullworks.models.user import PayRateHistory, User
from hullworks.schemas.admin import UserCreate, UserUpdate
from hullworks.services.organization_service import DepartmentService

logger = logging.getLogger(__name__)


class UserService:
    """User management: creation, role and rate changes, deactivation."""

    @staticmethod
    async def get(db: AsyncSession, user_id: UUID) -> User:
        user = await db.scalar(select(User).where(User.id == user_id))
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    @staticmethod
    async def reload(db: AsyncSession, user_id: UUID) -> User:
        return await db.scalar(select(User).where(User.id == user_id).execution_options(populate_existing=True))

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
        user = await db.scalar(select(User).where(User.email == email.lower()))
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        role: str | None = None,
        department_id: UUID | None = None,
        include_inactive: bool = False,
    ) -> list[User]:
        query = select(User)
        if role:
            query = query.where(User.role == role.upper())
        if department_id:
            query = query.where(User.department_id == department_id)
        if not include_inactive:
            query = query.where(User.is_active == True)  # noqa: E712
        return list((await db.scalars(query.order_by(User.email))).all())

    @staticmethod
    async def _record_rate_change(
        db: AsyncSession,
        user_id: UUID,
        old_rate: Decimal | None,
        new_rate: Decimal | None,
        changed_by: UUID | None,
        reason: str,
    ) -> None:
        db.add(PayRateHistory(
            user_id=user_id,
            old_rate=old_rate,
            new_rate=new_rate,
            changed_by=changed_by,
            reason=reason,
        ))

    @staticmethod
    async def create(db: AsyncSession, body: UserCreate, actor_id: UUID | None) -> User:
        email = body.email.lower()
        if await db.scalar(select(User.id).where(User.email == email)):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User with this email already exists")
        if body.department_id:
            await DepartmentService.get(db, body.department_id)

        user = User(
            email=email,
            hashed_password=get_password_hash(body.password),
            role=body.role,
            department_id=body.department_id,
            hourly_rate=body.hourly_rate,
            shift_schedule=body.shift_schedule,
        )
        db.add(user)
        await db.flush()

        if body.hourly_rate is not None:
            await UserService._record_rate_change(db, user.id, None, body.hourly_rate, actor_id, "Initial rate")
            await db.flush()

        logger.info("Created user %s (%s)", email, body.role)
        return await UserService.reload(db, user.id)

    @staticmethod
    async def update(db: AsyncSession, user_id: UUID, body: UserUpdate, actor_id: UUID) -> User:
        user = await UserService.get(db, user_id)
        fields = body.model_fields_set

        if body.email and body.email.lower() != user.email:
            if await db.scalar(select(User.id).where(User.email == body.email.lower())):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User with this email already exists")
            user.email = body.email.lower()
        if body.password:
            user.hashed_password = get_password_hash(body.password)
        if body.role:
            user.role = body.role
        if "department_id" in fields and body.department_id != user.department_id:
            if body.department_id:
                await DepartmentService.get(db, body.department_id)
            user.department_id = body.department_id
        if "shift_schedule" in fields:
            user.shift_schedule = body.shift_schedule
        if "hourly_rate" in fields and body.hourly_rate != user.hourly_rate:
            await UserService._record_rate_change(db, user.id, user.hourly_rate, body.hourly_rate, actor_id, "Admin update")
            user.hourly_rate = body.hourly_rate

        if body.is_active is False and user.is_active:
            await UserService.deactivate(db, user_id, actor_id)
        elif body.is_active:
            user.is_active = True

        user.updated_at = utcnow()
        await db.flush()
        return await UserService.reload(db, user.id)

    @staticmethod
    async def deactivate(db: AsyncSession, user_id: UUID, actor_id: UUID) -> User:
        """Soft-delete a user and drop their station memberships."""
        if user_id == actor_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")
        user = await UserService.get(db, user_id)
        user.is_active = False
        user.updated_at = utcnow()
        await db.execute(
            update(StationMember)
            .where(StationMember.user_id == user_id, StationMember.is_active == True)  # noqa: E712
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
        logger.info("Deactivated user %s", user.email)
        return user

    @staticmethod
    async def memberships(db: AsyncSession, user_id: UUID) -> list[Station]:
        result = await db.scalars(
            select(Station)
            .join(StationMember, StationMember.station_id == Station.id)
            .where(StationMember.user_id == user_id, StationMember.is_active == True)  # noqa: E712
            .order_by(Station.code)
        )
        return list(result.all())

    @staticmethod
    async def rate_history(db: AsyncSession, user_id: UUID, limit: int = 10) -> list[PayRateHistory]:
        result = await db.scalars(
            select(PayRateHistory)
            .where(PayRateHistory.user_id == user_id)
            .order_by(PayRateHistory.created_at.desc())
            .limit(limit)
        )
        return list(result.all())
