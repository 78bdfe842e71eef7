"""
tests/test_routing_clone.py - Routing versions are cloned, never edited
"""

import uuid

import pytest
from fastapi import HTTPException

from hullworks.schemas.routing import RoutingCloneRequest, RoutingStageIn
from hullworks.services.routing_service import RoutingService, enabled_stages, stage_at


def _stage(plant, sequence, code, enabled=True):
    return RoutingStageIn(
        code=code,
        name=code.title(),
        sequence=sequence,
        enabled=enabled,
        work_center_id=plant.kitting_wc.id,
        standard_stage_seconds=600,
    )


class TestEnabledStages:

    @pytest.mark.asyncio
    async def test_disabled_stages_are_skipped(self, plant):
        assert [s.code for s in enabled_stages(plant.routing)] == ["KITTING", "RIGGING"]

    @pytest.mark.asyncio
    async def test_stage_at_out_of_range_is_none(self, plant):
        assert stage_at(plant.routing, 1).code == "RIGGING"
        assert stage_at(plant.routing, 2) is None
        assert stage_at(None, 0) is None


class TestCloneVersion:

    @pytest.mark.asyncio
    async def test_clone_creates_next_draft_version(self, db, plant):
        body = RoutingCloneRequest(
            source_routing_version_id=plant.routing.id,
            model="LX24",
            trim="Sport",
            stages=[_stage(plant, 2, "SANDING"), _stage(plant, 1, "KITTING")],
        )
        clone = await RoutingService.clone_version(db, body, actor_id=plant.supervisor.id)

        assert clone.id != plant.routing.id
        assert clone.version == 2
        assert clone.status == "DRAFT"
        assert [s.code for s in clone.stages] == ["KITTING", "SANDING"]
        # source untouched
        assert plant.routing.version == 1
        assert len(plant.routing.stages) == 3

    @pytest.mark.asyncio
    async def test_new_trim_starts_at_version_one(self, db, plant):
        body = RoutingCloneRequest(model="LX24", trim="Fish", stages=[_stage(plant, 1, "KITTING")])
        clone = await RoutingService.clone_version(db, body, actor_id=plant.supervisor.id)
        assert clone.version == 1

    @pytest.mark.asyncio
    async def test_duplicate_sequences_rejected(self, db, plant):
        body = RoutingCloneRequest(model="LX24", stages=[_stage(plant, 1, "A"), _stage(plant, 1, "B")])
        with pytest.raises(HTTPException) as exc:
            await RoutingService.clone_version(db, body, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_work_center_is_404(self, db, plant):
        stage = _stage(plant, 1, "A").model_copy(update={"work_center_id": uuid.uuid4()})
        body = RoutingCloneRequest(model="LX24", stages=[stage])
        with pytest.raises(HTTPException) as exc:
            await RoutingService.clone_version(db, body, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_source_is_404(self, db, plant):
        body = RoutingCloneRequest(source_routing_version_id=uuid.uuid4(), model="LX24", stages=[_stage(plant, 1, "A")])
        with pytest.raises(HTTPException) as exc:
            await RoutingService.clone_version(db, body, actor_id=plant.supervisor.id)
        assert exc.value.status_code == 404
