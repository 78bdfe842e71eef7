"""
HULLWORKS MES test configuration and fixtures.

Every test gets a fresh in-memory SQLite database. The API client shares the
test's session, so rows created by fixtures are visible to requests and
changes made by requests can be read back directly.
"""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hullworks.core.security import create_access_token, get_password_hash
from hullworks.db.base import Base
from hullworks.db.session import get_db
from hullworks.models import (
    Department,
    RoutingStage,
    RoutingVersion,
    RoutingVersionStatus,
    Station,
    User,
    WorkCenter,
)

TEST_PASSWORD = "hullworks-test-pw"


# =============================================================================
# DATABASE
# =============================================================================

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT (begin_nested) behaves like Postgres
    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(db):
    from hullworks.main import app

    async def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# FACTORIES
# =============================================================================

def auth_headers(user: User) -> dict:
    token = create_access_token(
        subject=str(user.id),
        role=user.role,
        department_id=str(user.department_id) if user.department_id else None,
        email=user.email,
    )
    return {"Authorization": f"Bearer {token}"}


async def make_user(
    db: AsyncSession,
    email: str,
    role: str = "OPERATOR",
    department: Department | None = None,
    hourly_rate: float | None = None,
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        department_id=department.id if department else None,
        department=department,
        hourly_rate=Decimal(str(hourly_rate)) if hourly_rate is not None else None,
    )
    db.add(user)
    await db.flush()
    return user


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def plant(db):
    """
    Two departments, one work center and station each, and a released routing:

        seq 1  KITTING   (Fabrication)  enabled
        seq 2  PRIMER    (Fabrication)  disabled
        seq 3  RIGGING   (Rigging)      enabled
    """
    fabrication = Department(name="Fabrication")
    rigging = Department(name="Rigging")
    db.add_all([fabrication, rigging])
    await db.flush()

    kitting_wc = WorkCenter(name="Kitting Bay", department_id=fabrication.id, department=fabrication)
    rigging_wc = WorkCenter(name="Rigging Line", department_id=rigging.id, department=rigging)
    db.add_all([kitting_wc, rigging_wc])
    await db.flush()

    kitting_station = Station(
        code="KIT-1", name="Kitting 1", work_center_id=kitting_wc.id, work_center=kitting_wc,
        default_pay_rate=Decimal("25.00"),
    )
    rigging_station = Station(
        code="RIG-1", name="Rigging 1", work_center_id=rigging_wc.id, work_center=rigging_wc,
    )
    db.add_all([kitting_station, rigging_station])
    await db.flush()

    routing = RoutingVersion(
        model="LX24",
        trim="Sport",
        version=1,
        status=RoutingVersionStatus.RELEASED.value,
        stages=[
            RoutingStage(sequence=1, code="KITTING", name="Kitting", enabled=True,
                         work_center_id=kitting_wc.id, work_center=kitting_wc, standard_stage_seconds=7200),
            RoutingStage(sequence=2, code="PRIMER", name="Primer", enabled=False,
                         work_center_id=kitting_wc.id, work_center=kitting_wc, standard_stage_seconds=3600),
            RoutingStage(sequence=3, code="RIGGING", name="Rigging", enabled=True,
                         work_center_id=rigging_wc.id, work_center=rigging_wc, standard_stage_seconds=10800),
        ],
    )
    db.add(routing)
    await db.flush()

    admin = await make_user(db, "admin@hullworks.com", role="ADMIN")
    supervisor = await make_user(db, "supervisor@hullworks.com", role="SUPERVISOR", department=fabrication)
    kitter = await make_user(db, "kitter@hullworks.com", department=fabrication, hourly_rate=30)
    rigger = await make_user(db, "rigger@hullworks.com", department=rigging, hourly_rate=60)

    return SimpleNamespace(
        fabrication=fabrication,
        rigging=rigging,
        kitting_wc=kitting_wc,
        rigging_wc=rigging_wc,
        kitting_station=kitting_station,
        rigging_station=rigging_station,
        routing=routing,
        admin=admin,
        supervisor=supervisor,
        kitter=kitter,
        rigger=rigger,
    )
