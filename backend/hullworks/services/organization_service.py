"""HULLWORKS MES — Plant layout admin: departments, work centers, stations, equipment.

Deletes are soft (is_active=False) except station equipment assignments,
which are removed outright.
"""
import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.db.base import utcnow
from hullworks.models.organization import Department, Equipment, Station, StationEquipment, StationMember, WorkCenter
from hullworks.models.user import User
from hullworks.schemas.admin import (
    DepartmentUpdate,
    EquipmentCreate,
    EquipmentUpdate,
    StationCreate,
    StationUpdate,
    WorkCenterCreate,
    WorkCenterUpdate,
)

logger = logging.getLogger(__name__)


def _not_found(label: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class DepartmentService:

    @staticmethod
    async def get(db: AsyncSession, department_id: UUID) -> Department:
        department = await db.scalar(select(Department).where(Department.id == department_id))
        if not department:
            raise _not_found("Department")
        return department

    @staticmethod
    async def counts(db: AsyncSession, department_id: UUID) -> tuple[int, int]:
        """(active work centers, active users) in the department."""
        work_centers = (await db.execute(
            select(func.count(WorkCenter.id)).where(WorkCenter.department_id == department_id, WorkCenter.is_active == True)  # noqa: E712
        )).scalar_one()
        users = (await db.execute(
            select(func.count(User.id)).where(User.department_id == department_id, User.is_active == True)  # noqa: E712
        )).scalar_one()
        return work_centers, users

    @staticmethod
    async def list_departments(db: AsyncSession, include_inactive: bool = False) -> list[Department]:
        query = select(Department)
        if not include_inactive:
            query = query.where(Department.is_active == True)  # noqa: E712
        return list((await db.scalars(query.order_by(Department.name))).all())

    @staticmethod
    async def create(db: AsyncSession, name: str) -> Department:
        if await db.scalar(select(Department.id).where(Department.name == name)):
            raise _conflict("Department name already exists")
        department = Department(name=name)
        db.add(department)
        await db.flush()
        logger.info("Created department %s", name)
        return department

    @staticmethod
    async def update(db: AsyncSession, department_id: UUID, body: DepartmentUpdate) -> Department:
        department = await DepartmentService.get(db, department_id)
        if body.name and body.name != department.name:
            if await db.scalar(select(Department.id).where(Department.name == body.name)):
                raise _conflict("Department name already exists")
            department.name = body.name
        if body.is_active is False and department.is_active:
            return await DepartmentService.deactivate(db, department_id)
        if body.is_active:
            department.is_active = True
        department.updated_at = utcnow()
        await db.flush()
        return department

    @staticmethod
    async def deactivate(db: AsyncSession, department_id: UUID) -> Department:
        department = await DepartmentService.get(db, department_id)
        work_centers, users = await DepartmentService.counts(db, department_id)
        if work_centers or users:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot delete department with {work_centers} work centers and {users} users",
            )
        department.is_active = False
        department.updated_at = utcnow()
        await db.flush()
        logger.info("Deactivated department %s", department.name)
        return department


class WorkCenterService:

    @staticmethod
    async def get(db: AsyncSession, work_center_id: UUID) -> WorkCenter:
        work_center = await db.scalar(select(WorkCenter).where(WorkCenter.id == work_center_id))
        if not work_center:
            raise _not_found("Work center")
        return work_center

    @staticmethod
    async def station_count(db: AsyncSession, work_center_id: UUID) -> int:
        return (await db.execute(
            select(func.count(Station.id)).where(Station.work_center_id == work_center_id, Station.is_active == True)  # noqa: E712
        )).scalar_one()

    @staticmethod
    async def list_work_centers(
        db: AsyncSession,
        department_id: UUID | None = None,
        include_inactive: bool = False,
    ) -> list[WorkCenter]:
        query = select(WorkCenter)
        if department_id:
            query = query.where(WorkCenter.department_id == department_id)
        if not include_inactive:
            query = query.where(WorkCenter.is_active == True)  # noqa: E712
        return list((await db.scalars(query.order_by(WorkCenter.name))).all())

    @staticmethod
    async def create(db: AsyncSession, body: WorkCenterCreate) -> WorkCenter:
        await DepartmentService.get(db, body.department_id)
        if await db.scalar(select(WorkCenter.id).where(WorkCenter.name == body.name)):
            raise _conflict("Work center name already exists")
        work_center = WorkCenter(name=body.name, department_id=body.department_id)
        db.add(work_center)
        await db.flush()
        return await WorkCenterService.reload(db, work_center.id)

    @staticmethod
    async def reload(db: AsyncSession, work_center_id: UUID) -> WorkCenter:
        return await db.scalar(
            select(WorkCenter).where(WorkCenter.id == work_center_id).execution_options(populate_existing=True)
        )

    @staticmethod
    async def update(db: AsyncSession, work_center_id: UUID, body: WorkCenterUpdate) -> WorkCenter:
        work_center = await WorkCenterService.get(db, work_center_id)
        if body.name and body.name != work_center.name:
            if await db.scalar(select(WorkCenter.id).where(WorkCenter.name == body.name)):
                raise _conflict("Work center name already exists")
            work_center.name = body.name
        if body.department_id and body.department_id != work_center.department_id:
            await DepartmentService.get(db, body.department_id)
            work_center.department_id = body.department_id
        if body.is_active is not None:
            work_center.is_active = body.is_active
        work_center.updated_at = utcnow()
        await db.flush()
        return await WorkCenterService.reload(db, work_center.id)

    @staticmethod
    async def deactivate(db: AsyncSession, work_center_id: UUID) -> WorkCenter:
        work_center = await WorkCenterService.get(db, work_center_id)
        work_center.is_active = False
        work_center.updated_at = utcnow()
        await db.flush()
        logger.info("Deactivated work center %s", work_center.name)
        return work_center


class StationService:

    @staticmethod
    async def get(db: AsyncSession, station_id: UUID) -> Station:
        station = await db.scalar(select(Station).where(Station.id == station_id))
        if not station:
            raise _not_found("Station")
        return station

    @staticmethod
    async def reload(db: AsyncSession, station_id: UUID) -> Station:
        return await db.scalar(
            select(Station).where(Station.id == station_id).execution_options(populate_existing=True)
        )

    @staticmethod
    async def counts(db: AsyncSession, station_id: UUID) -> tuple[int, int]:
        """(active members, assigned equipment)."""
        members = (await db.execute(
            select(func.count(StationMember.id)).where(StationMember.station_id == station_id, StationMember.is_active == True)  # noqa: E712
        )).scalar_one()
        equipment = (await db.execute(
            select(func.count(StationEquipment.id)).where(StationEquipment.station_id == station_id)
        )).scalar_one()
        return members, equipment

    @staticmethod
    async def list_stations(
        db: AsyncSession,
        work_center_id: UUID | None = None,
        include_inactive: bool = False,
    ) -> list[Station]:
        query = select(Station)
        if work_center_id:
            query = query.where(Station.work_center_id == work_center_id)
        if not include_inactive:
            query = query.where(Station.is_active == True)  # noqa: E712
        return list((await db.scalars(query.order_by(Station.code))).all())

    @staticmethod
    async def create(db: AsyncSession, body: StationCreate) -> Station:
        await WorkCenterService.get(db, body.work_center_id)
        if await db.scalar(select(Station.id).where(Station.code == body.code)):
            raise _conflict("Station code already exists")
        station = Station(**body.model_dump())
        db.add(station)
        await db.flush()
        logger.info("Created station %s", station.code)
        return await StationService.reload(db, station.id)

    @staticmethod
    async def update(db: AsyncSession, station_id: UUID, body: StationUpdate) -> Station:
        station = await StationService.get(db, station_id)
        data = body.model_dump(exclude_unset=True)
        if data.get("code") and data["code"] != station.code:
            if await db.scalar(select(Station.id).where(Station.code == data["code"])):
                raise _conflict("Station code already exists")
        if data.get("work_center_id") and data["work_center_id"] != station.work_center_id:
            await WorkCenterService.get(db, data["work_center_id"])
        for key, value in data.items():
            if key in ("code", "name", "work_center_id", "is_active") and value is None:
                continue
            setattr(station, key, value)
        station.updated_at = utcnow()
        await db.flush()
        return await StationService.reload(db, station.id)

    @staticmethod
    async def deactivate(db: AsyncSession, station_id: UUID) -> Station:
        station = await StationService.get(db, station_id)
        station.is_active = False
        station.updated_at = utcnow()
        await db.flush()
        logger.info("Deactivated station %s", station.code)
        return station

    # ── Members ─────────────────────────────────────────────────────────────
    @staticmethod
    async def list_members(db: AsyncSession, station_id: UUID, include_inactive: bool = False) -> list[StationMember]:
        await StationService.get(db, station_id)
        query = select(StationMember).where(StationMember.station_id == station_id)
        if not include_inactive:
            query = query.where(StationMember.is_active == True)  # noqa: E712
        return list((await db.scalars(query.order_by(StationMember.created_at))).all())

    @staticmethod
    async def add_member(db: AsyncSession, station_id: UUID, user_id: UUID) -> StationMember:
        """Add a user, or reactivate a previously removed membership."""
        await StationService.get(db, station_id)
        user = await db.scalar(select(User).where(User.id == user_id))
        if not user or not user.is_active:
            raise _not_found("User")

        member = await db.scalar(
            select(StationMember).where(StationMember.station_id == station_id, StationMember.user_id == user_id)
        )
        if member and member.is_active:
            raise _conflict("User is already a member of this station")
        if member:
            member.is_active = True
        else:
            member = StationMember(station_id=station_id, user_id=user_id)
            db.add(member)
        await db.flush()
        return await db.scalar(
            select(StationMember).where(StationMember.id == member.id).execution_options(populate_existing=True)
        )

    @staticmethod
    async def remove_member(db: AsyncSession, station_id: UUID, user_id: UUID) -> StationMember:
        member = await db.scalar(
            select(StationMember).where(
                StationMember.station_id == station_id,
                StationMember.user_id == user_id,
                StationMember.is_active == True,  # noqa: E712
            )
        )
        if not member:
            raise _not_found("Station member")
        member.is_active = False
        await db.flush()
        return member

    # ── Equipment ───────────────────────────────────────────────────────────
    @staticmethod
    async def list_equipment(db: AsyncSession, station_id: UUID) -> list[StationEquipment]:
        await StationService.get(db, station_id)
        result = await db.scalars(
            select(StationEquipment).where(StationEquipment.station_id == station_id).order_by(StationEquipment.created_at)
        )
        return list(result.all())

    @staticmethod
    async def assign_equipment(db: AsyncSession, station_id: UUID, equipment_id: UUID) -> StationEquipment:
        await StationService.get(db, station_id)
        equipment = await EquipmentService.get(db, equipment_id)
        if not equipment.is_active:
            raise _conflict("Equipment is inactive")
        if await db.scalar(
            select(StationEquipment.id).where(
                StationEquipment.station_id == station_id, StationEquipment.equipment_id == equipment_id,
            )
        ):
            raise _conflict("Equipment already assigned to this station")
        assignment = StationEquipment(station_id=station_id, equipment_id=equipment_id)
        db.add(assignment)
        await db.flush()
        return await db.scalar(
            select(StationEquipment).where(StationEquipment.id == assignment.id).execution_options(populate_existing=True)
        )

    @staticmethod
    async def unassign_equipment(db: AsyncSession, station_id: UUID, equipment_id: UUID) -> None:
        assignment = await db.scalar(
            select(StationEquipment).where(
                StationEquipment.station_id == station_id, StationEquipment.equipment_id == equipment_id,
            )
        )
        if not assignment:
            raise _not_found("Equipment assignment")
        await db.delete(assignment)
        await db.flush()


class EquipmentService:

    @staticmethod
    async def get(db: AsyncSession, equipment_id: UUID) -> Equipment:
        equipment = await db.scalar(select(Equipment).where(Equipment.id == equipment_id))
        if not equipment:
            raise _not_found("Equipment")
        return equipment

    @staticmethod
    async def station_count(db: AsyncSession, equipment_id: UUID) -> int:
        return (await db.execute(
            select(func.count(StationEquipment.id)).where(StationEquipment.equipment_id == equipment_id)
        )).scalar_one()

    @staticmethod
    async def list_equipment(db: AsyncSession, include_inactive: bool = False) -> list[Equipment]:
        query = select(Equipment)
        if not include_inactive:
            query = query.where(Equipment.is_active == True)  # noqa: E712
        return list((await db.scalars(query.order_by(Equipment.name))).all())

    @staticmethod
    async def create(db: AsyncSession, body: EquipmentCreate) -> Equipment:
        if await db.scalar(select(Equipment.id).where(Equipment.name == body.name)):
            raise _conflict("Equipment name already exists")
        equipment = Equipment(name=body.name, description=body.description)
        db.add(equipment)
        await db.flush()
        return equipment

    @staticmethod
    async def update(db: AsyncSession, equipment_id: UUID, body: EquipmentUpdate) -> Equipment:
        equipment = await EquipmentService.get(db, equipment_id)
        if body.name and body.name != equipment.name:
            if await db.scalar(select(Equipment.id).where(Equipment.name == body.name)):
                raise _conflict("Equipment name already exists")
            equipment.name = body.name
        if "description" in body.model_fields_set:
            equipment.description = body.description
        if body.is_active is not None:
            equipment.is_active = body.is_active
        equipment.updated_at = utcnow()
        await db.flush()
        return equipment

    @staticmethod
    async def deactivate(db: AsyncSession, equipment_id: UUID) -> Equipment:
        equipment = await EquipmentService.get(db, equipment_id)
        equipment.is_active = False
        equipment.updated_at = utcnow()
        await db.flush()
        return equipment
