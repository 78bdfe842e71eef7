"""
tests/test_work_order_lifecycle.py - Work order creation, planning edits, lifecycle transitions, versions
"""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from hullworks.db.base import utcnow
from hullworks.models import AuditLog, WorkOrderVersion
from hullworks.schemas.work_order import WorkOrderCreate, WorkOrderUpdate
from hullworks.services.audit_service import latest_audit
from hullworks.services.work_order_service import WorkOrderService
from hullworks.services.work_orders.snapshot_metadata import WORK_ORDER_SNAPSHOT_FIELDS, WORK_ORDER_SNAPSHOT_SCHEMA_HASH


def _future(days: int) -> str:
    return (utcnow().date() + timedelta(days=days)).isoformat()


async def _create(db, plant, **overrides):
    body = WorkOrderCreate(
        hull_id=overrides.pop("hull_id", "HULL-001"),
        product_sku="LX24-SPORT",
        routing_version_id=plant.routing.id,
        **overrides,
    )
    return await WorkOrderService.create(db, body, actor_id=plant.supervisor.id)


async def _versions(db, work_order_id):
    return list((await db.scalars(
        select(WorkOrderVersion)
        .where(WorkOrderVersion.work_order_id == work_order_id)
        .order_by(WorkOrderVersion.version_number)
    )).all())


# =============================================================================
# CREATE
# =============================================================================

class TestCreate:

    @pytest.mark.asyncio
    async def test_creates_planned_order_with_initial_version(self, db, plant):
        wo = await _create(db, plant)

        assert wo.status == "PLANNED"
        assert wo.current_stage_index == 0
        assert wo.number.startswith("WO-")
        assert [s["code"] for s in wo.spec_snapshot["stages"]] == ["KITTING", "RIGGING"]
        assert wo.spec_snapshot["model"] == "LX24"

        versions = await _versions(db, wo.id)
        assert len(versions) == 1
        assert versions[0].version_number == 1
        assert versions[0].reason == "Initial creation"
        assert versions[0].schema_hash == WORK_ORDER_SNAPSHOT_SCHEMA_HASH

    @pytest.mark.asyncio
    async def test_duplicate_number_rejected(self, db, plant):
        await _create(db, plant, number="WO-FIXED")
        with pytest.raises(HTTPException) as exc:
            await _create(db, plant, number="WO-FIXED", hull_id="HULL-002")
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_start_must_precede_finish(self, db, plant):
        with pytest.raises(HTTPException) as exc:
            await _create(db, plant, planned_start_date=_future(5), planned_finish_date=_future(5))
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_start_in_the_past_rejected(self, db, plant):
        with pytest.raises(HTTPException) as exc:
            await _create(db, plant, planned_start_date=_future(-3))
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_date_rejected(self, db, plant):
        with pytest.raises(HTTPException) as exc:
            await _create(db, plant, planned_start_date="03/04/2030")
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_routing_version_is_404(self, db, plant):
        import uuid

        body = WorkOrderCreate(hull_id="HULL-9", routing_version_id=uuid.uuid4())
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.create(db, body, actor_id=plant.admin.id)
        assert exc.value.status_code == 404


# =============================================================================
# TRANSITIONS
# =============================================================================

class TestTransitions:

    @pytest.mark.asyncio
    async def test_release_moves_planned_to_released(self, db, plant):
        wo = await _create(db, plant)
        wo = await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        assert wo.status == "RELEASED"
        assert wo.current_stage_index == 0

        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_hold_requires_reason(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.hold(db, wo.id, "   ", actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_hold_then_unhold_restores_previous_status(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        wo.status = "IN_PROGRESS"
        await db.flush()

        held, previous = await WorkOrderService.hold(db, wo.id, "Gelcoat defect", actor_id=plant.supervisor.id)
        assert held.status == "HOLD"
        assert previous == "IN_PROGRESS"

        audit = await db.scalar(select(AuditLog).where(AuditLog.model_id == wo.id, AuditLog.action == "HOLD"))
        assert audit.after["reason"] == "Gelcoat defect"

        restored = await WorkOrderService.unhold(db, wo.id, actor_id=plant.supervisor.id)
        assert restored.status == "IN_PROGRESS"

    @pytest.mark.asyncio
    async def test_hold_entry_visible_before_commit(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        await WorkOrderService.hold(db, wo.id, "Waiting on trailer", actor_id=plant.supervisor.id)

        entry = await latest_audit(db, "WorkOrder", wo.id, "HOLD")
        assert entry is not None
        assert entry.after["previousStatus"] == "RELEASED"

    @pytest.mark.asyncio
    async def test_each_hold_cycle_restores_its_own_status(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)

        await WorkOrderService.hold(db, wo.id, "Mould repair", actor_id=plant.supervisor.id)
        wo = await WorkOrderService.unhold(db, wo.id, actor_id=plant.supervisor.id)
        assert wo.status == "RELEASED"

        wo.status = "IN_PROGRESS"
        await db.flush()
        await WorkOrderService.hold(db, wo.id, "Gelcoat defect", actor_id=plant.supervisor.id)
        wo = await WorkOrderService.unhold(db, wo.id, actor_id=plant.supervisor.id)
        assert wo.status == "IN_PROGRESS"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blocked", ["PLANNED", "COMPLETED", "CLOSED", "CANCELLED"])
    async def test_hold_rejected_from_non_active_status(self, db, plant, blocked):
        wo = await _create(db, plant)
        wo.status = blocked
        await db.flush()
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.hold(db, wo.id, "Parts shortage", actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_unhold_requires_hold(self, db, plant):
        wo = await _create(db, plant)
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.unhold(db, wo.id, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_cancel_records_snapshot_with_cancelled_status(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        wo.status = "IN_PROGRESS"
        await db.flush()

        wo = await WorkOrderService.cancel(db, wo.id, actor_id=plant.supervisor.id)
        assert wo.status == "CANCELLED"

        versions = await _versions(db, wo.id)
        assert versions[-1].reason == "Work order cancelled"
        assert versions[-1].snapshot_data["status"] == "CANCELLED"
        assert versions[-1].schema_hash == WORK_ORDER_SNAPSHOT_SCHEMA_HASH

    @pytest.mark.asyncio
    async def test_cancel_rejected_once_completed(self, db, plant):
        wo = await _create(db, plant)
        wo.status = "COMPLETED"
        await db.flush()
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.cancel(db, wo.id, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_uncancel_returns_to_planned(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.cancel(db, wo.id, actor_id=plant.supervisor.id)

        wo = await WorkOrderService.uncancel(db, wo.id, actor_id=plant.supervisor.id)
        assert wo.status == "PLANNED"

        versions = await _versions(db, wo.id)
        assert versions[-1].snapshot_data["status"] == "PLANNED"
        assert "uncancelled" in versions[-1].reason

    @pytest.mark.asyncio
    async def test_uncancel_requires_cancelled(self, db, plant):
        wo = await _create(db, plant)
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.uncancel(db, wo.id, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400


# =============================================================================
# PLANNING EDITS AND VERSIONS
# =============================================================================

class TestPlanningEdits:

    @pytest.mark.asyncio
    async def test_update_records_change_summary(self, db, plant):
        wo = await _create(db, plant)
        wo, changes = await WorkOrderService.update(
            db, wo.id, WorkOrderUpdate(qty=2, priority="HIGH"), actor_id=plant.supervisor.id,
        )
        assert wo.qty == 2
        assert wo.priority == "HIGH"
        assert len(changes) == 2

        versions = await _versions(db, wo.id)
        assert versions[-1].reason.startswith("Planning details updated")

    @pytest.mark.asyncio
    async def test_no_op_update_creates_no_version(self, db, plant):
        wo = await _create(db, plant)
        _, changes = await WorkOrderService.update(db, wo.id, WorkOrderUpdate(qty=1), actor_id=plant.supervisor.id)
        assert changes == ["No changes detected"]
        assert len(await _versions(db, wo.id)) == 1

    @pytest.mark.asyncio
    async def test_hull_frozen_after_release(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.release(db, wo.id, actor_id=plant.supervisor.id)
        with pytest.raises(HTTPException) as exc:
            await WorkOrderService.update(db, wo.id, WorkOrderUpdate(hull_id="HULL-999"), actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_restore_applies_snapshot_and_appends_version(self, db, plant):
        wo = await _create(db, plant)
        await WorkOrderService.update(db, wo.id, WorkOrderUpdate(qty=4), actor_id=plant.supervisor.id)
        first = (await _versions(db, wo.id))[0]

        wo = await WorkOrderService.restore_version(db, wo.id, first.id, actor_id=plant.supervisor.id)
        assert wo.qty == 1

        versions = await _versions(db, wo.id)
        assert len(versions) == 3
        assert versions[-1].reason == "Restored from Version 1"

    @pytest.mark.asyncio
    async def test_restore_recaptures_snapshot_in_current_layout(self, db, plant):
        wo = await _create(db, plant)
        first = (await _versions(db, wo.id))[0]
        first.snapshot_data = {"hullId": "HULL-OLD", "qty": 3}
        first.schema_hash = "sha256:legacy"
        await db.flush()

        wo = await WorkOrderService.restore_version(db, wo.id, first.id, actor_id=plant.supervisor.id)
        assert wo.hull_id == "HULL-OLD"

        latest = (await _versions(db, wo.id))[-1]
        assert latest.schema_hash == WORK_ORDER_SNAPSHOT_SCHEMA_HASH
        assert list(latest.snapshot_data) == list(WORK_ORDER_SNAPSHOT_FIELDS)
        assert latest.snapshot_data["hullId"] == "HULL-OLD"
        assert latest.snapshot_data["qty"] == 3

    @pytest.mark.asyncio
    async def test_manual_version_needs_reason(self, db, plant):
        wo = await _create(db, plant)
        with pytest.raises(HTTPException):
            await WorkOrderService.create_version(db, wo.id, "", actor_id=plant.supervisor.id)
        version = await WorkOrderService.create_version(db, wo.id, "Pre-audit checkpoint", actor_id=plant.supervisor.id)
        assert version.version_number == 2
