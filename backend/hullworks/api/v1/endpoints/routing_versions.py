"""HULLWORKS MES — Routing version endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_routing, require_supervisor
from hullworks.models.routing import RoutingStage, RoutingVersion
from hullworks.schemas.common import ApiResponse, Meta
from hullworks.schemas.routing import RoutingCloneRequest, RoutingStageResponse, RoutingVersionResponse
from hullworks.services.routing_service import RoutingService, enabled_stages

router = APIRouter()


def _stage_to_response(stage: RoutingStage) -> RoutingStageResponse:
    work_center = stage.work_center
    department = work_center.department if work_center else None
    return RoutingStageResponse(
        id=stage.id,
        code=stage.code,
        name=stage.name,
        sequence=stage.sequence,
        enabled=stage.enabled,
        work_center_id=stage.work_center_id,
        work_center_name=work_center.name if work_center else None,
        department_id=department.id if department else None,
        department_name=department.name if department else None,
        standard_stage_seconds=stage.standard_stage_seconds,
    )


def _version_to_response(version: RoutingVersion, all_stages: bool = False) -> RoutingVersionResponse:
    stages = sorted(version.stages, key=lambda s: s.sequence) if all_stages else enabled_stages(version)
    return RoutingVersionResponse(
        id=version.id,
        model=version.model,
        trim=version.trim,
        version=version.version,
        status=version.status,
        features_json=version.features_json,
        released_at=version.released_at,
        created_at=version.created_at,
        stages=[_stage_to_response(s) for s in stages],
    )


@router.get("", response_model=ApiResponse[list[RoutingVersionResponse]])
async def list_routing_versions(
    model: str | None = Query(None),
    trim: str | None = Query(None),
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    """Routing versions with their enabled stages in sequence order."""
    versions = await RoutingService.list_versions(db, model, trim)
    data = [_version_to_response(v) for v in versions]
    return ApiResponse(data=data, meta=Meta.whole_list(data))


@router.get("/{routing_version_id}", response_model=ApiResponse[RoutingVersionResponse])
async def get_routing_version(
    routing_version_id: UUID,
    user: CurrentUser = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db),
):
    """Single version including disabled stages."""
    version = await RoutingService.get_version(db, routing_version_id)
    return ApiResponse(data=_version_to_response(version, all_stages=True))


@router.post("/clone", response_model=ApiResponse[RoutingVersionResponse], status_code=201)
async def clone_routing_version(
    body: RoutingCloneRequest,
    user: CurrentUser = Depends(require_routing),
    db: AsyncSession = Depends(get_db),
):
    version = await RoutingService.clone_version(db, body, actor_id=user.id)
    return ApiResponse(data=_version_to_response(version, all_stages=True))
