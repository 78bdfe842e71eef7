"""HULLWORKS MES — Seed a dev plant: departments, work centers, stations, one released routing, the product catalogue and an admin (run after migrations)."""
import asyncio
import os
import sys

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hullworks.config import get_settings
from hullworks.core.security import get_password_hash
from hullworks.db.base import utcnow
from hullworks.models import (
    Department,
    ProductModel,
    ProductTrim,
    RoutingStage,
    RoutingVersion,
    RoutingVersionStatus,
    Station,
    User,
    UserRoleEnum,
    WorkCenter,
)

DATABASE_URL = os.getenv("DATABASE_URL", get_settings().DATABASE_URL)

# (sequence, code, name, department, standard seconds)
STAGES = [
    (1, "KITTING", "Kitting", "Materials", 7200),
    (2, "LAMINATION", "Lamination", "Lamination", 14400),
    (3, "HULL_RIGGING", "Hull Rigging", "Rigging", 10800),
    (4, "DECK_RIGGING", "Deck Rigging", "Rigging", 9000),
    (5, "CAPPING", "Capping", "Assembly", 5400),
    (6, "ENGINE_HANG", "Engine Hang", "Assembly", 7200),
    (7, "FINAL_RIGGING", "Final Rigging", "Rigging", 10800),
    (8, "WATER_TEST", "Water Test", "Quality", 3600),
    (9, "QA", "QA", "Quality", 5400),
    (10, "CLEANING", "Cleaning", "Finishing", 3600),
    (11, "SHIPPING", "Shipping", "Finishing", 1800),
]

# (model, description, trims)
PRODUCT_MODELS = [
    ("LX24", "24-foot luxury boat model", ["Sport"]),
    ("LX26", "26-foot luxury boat model", []),
]


async def seed():
    engine = create_async_engine(DATABASE_URL)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        existing = await session.scalar(select(User).where(User.email == "admin@hullworks.com"))
        if existing:
            print("Dev plant already exists. Skipping seed.")
            await engine.dispose()
            return

        departments: dict[str, Department] = {}
        for _, _, _, dept_name, _ in STAGES:
            if dept_name not in departments:
                departments[dept_name] = Department(name=dept_name)
                session.add(departments[dept_name])
        await session.flush()

        routing = RoutingVersion(
            model="LX24",
            trim="Sport",
            version=1,
            status=RoutingVersionStatus.RELEASED.value,
            released_at=utcnow(),
        )
        session.add(routing)
        await session.flush()

        for sequence, code, name, dept_name, seconds in STAGES:
            work_center = WorkCenter(name=name, department_id=departments[dept_name].id)
            session.add(work_center)
            await session.flush()
            session.add(Station(code=f"{code}-1", name=f"{name} 1", work_center_id=work_center.id))
            session.add(RoutingStage(
                routing_version_id=routing.id,
                sequence=sequence,
                code=code,
                name=name,
                work_center_id=work_center.id,
                standard_stage_seconds=seconds,
            ))

        for model_name, description, trims in PRODUCT_MODELS:
            session.add(ProductModel(
                name=model_name,
                description=description,
                trims=[ProductTrim(name=trim) for trim in trims],
            ))

        session.add(User(
            email="admin@hullworks.com",
            hashed_password=get_password_hash("hullworks123"),
            role=UserRoleEnum.ADMIN.value,
        ))
        session.add(User(
            email="supervisor@hullworks.com",
            hashed_password=get_password_hash("hullworks123"),
            role=UserRoleEnum.SUPERVISOR.value,
            department_id=departments["Rigging"].id,
        ))
        await session.commit()
        print("Seeded dev plant, admin@hullworks.com and supervisor@hullworks.com (password: hullworks123)")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
