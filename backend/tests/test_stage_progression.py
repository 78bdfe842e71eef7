"""
tests/test_stage_progression.py - Operator START / PAUSE / COMPLETE across routing stages
"""

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from hullworks.models import WOStageLog
from hullworks.schemas.work_order import WorkOrderCreate
from hullworks.services.stage_service import StageService
from hullworks.services.work_order_service import WorkOrderService


@pytest.fixture
def released(db, plant):
    async def _make():
        wo = await WorkOrderService.create(
            db,
            WorkOrderCreate(hull_id="HULL-100", routing_version_id=plant.routing.id),
            actor_id=plant.supervisor.id,
        )
        return await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
    return _make


class TestStageEvents:

    @pytest.mark.asyncio
    async def test_start_moves_released_to_in_progress(self, db, plant, released):
        wo = await released()
        wo, log = await StageService.start(
            db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id,
        )
        assert wo.status == "IN_PROGRESS"
        assert log.event == "START"
        assert float(log.hourly_rate_snapshot) == 30.0

    @pytest.mark.asyncio
    async def test_pause_keeps_status(self, db, plant, released):
        wo = await released()
        await StageService.start(db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id)
        wo, log = await StageService.pause(
            db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id, note="Break",
        )
        assert wo.status == "IN_PROGRESS"
        assert log.event == "PAUSE"
        assert log.note == "Break"

    @pytest.mark.asyncio
    async def test_complete_skips_disabled_stage_then_finishes(self, db, plant, released):
        wo = await released()
        await StageService.start(db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id)
        wo, log = await StageService.complete(
            db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id, good_qty=1,
        )
        # PRIMER is disabled, so the next stage is RIGGING
        assert wo.current_stage_index == 1
        assert wo.status == "RELEASED"
        assert log.good_qty == 1

        await StageService.start(db, wo.id, plant.rigging_station.id, plant.rigger.id, plant.rigging.id)
        wo, _ = await StageService.complete(
            db, wo.id, plant.rigging_station.id, plant.rigger.id, plant.rigging.id, good_qty=1,
        )
        assert wo.status == "COMPLETED"
        assert wo.current_stage_index == 1

        logs = (await db.scalars(select(WOStageLog).where(WOStageLog.work_order_id == wo.id))).all()
        assert sorted(log.event for log in logs) == ["COMPLETE", "COMPLETE", "START", "START"]

    @pytest.mark.asyncio
    async def test_negative_quantity_rejected(self, db, plant, released):
        wo = await released()
        with pytest.raises(HTTPException) as exc:
            await StageService.complete(
                db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id, scrap_qty=-1,
            )
        assert exc.value.status_code == 400


class TestStageGuards:

    @pytest.mark.asyncio
    async def test_missing_department_is_400(self, db, plant, released):
        wo = await released()
        with pytest.raises(HTTPException) as exc:
            await StageService.start(db, wo.id, plant.kitting_station.id, plant.kitter.id, None)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_other_department_is_403(self, db, plant, released):
        wo = await released()
        with pytest.raises(HTTPException) as exc:
            await StageService.start(db, wo.id, plant.kitting_station.id, plant.rigger.id, plant.rigging.id)
        assert exc.value.status_code == 403

    @pytest.mark.asyncio
    async def test_station_outside_stage_work_center_is_400(self, db, plant, released):
        wo = await released()
        with pytest.raises(HTTPException) as exc:
            await StageService.start(db, wo.id, plant.rigging_station.id, plant.kitter.id, plant.fabrication.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_inactive_station_is_400(self, db, plant, released):
        wo = await released()
        plant.kitting_station.is_active = False
        await db.flush()
        with pytest.raises(HTTPException) as exc:
            await StageService.start(db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_held_order_is_409(self, db, plant, released):
        wo = await released()
        await WorkOrderService.hold(db, wo.id, "Inspection", actor_id=plant.supervisor.id)
        with pytest.raises(HTTPException) as exc:
            await StageService.start(db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id)
        assert exc.value.status_code == 409

    @pytest.mark.asyncio
    async def test_planned_order_is_409(self, db, plant):
        wo = await WorkOrderService.create(
            db,
            WorkOrderCreate(hull_id="HULL-101", routing_version_id=plant.routing.id),
            actor_id=plant.supervisor.id,
        )
        with pytest.raises(HTTPException) as exc:
            await StageService.start(db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id)
        assert exc.value.status_code == 409

    @pytest.mark.asyncio
    async def test_completed_order_is_409(self, db, plant, released):
        wo = await released()
        wo.status = "COMPLETED"
        await db.flush()
        with pytest.raises(HTTPException) as exc:
            await StageService.pause(db, wo.id, plant.kitting_station.id, plant.kitter.id, plant.fabrication.id)
        assert exc.value.status_code == 409
