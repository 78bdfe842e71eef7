"""HULLWORKS MES — RoutingService: routing versions, enabled-stage sequencing, cloning."""
import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.models.organization import WorkCenter
from hullworks.models.routing import RoutingStage, RoutingVersion, RoutingVersionStatus
from hullworks.schemas.routing import RoutingCloneRequest
from hullworks.services.audit_service import ACTION_CLONE, log_audit

logger = logging.getLogger(__name__)


def enabled_stages(routing_version: RoutingVersion | None) -> list[RoutingStage]:
    """Enabled stages sorted by sequence. Index into this list with current_stage_index."""
    if routing_version is None:
        return []
    return sorted((s for s in routing_version.stages if s.enabled), key=lambda s: s.sequence)


def stage_at(routing_version: RoutingVersion | None, index: int) -> RoutingStage | None:
    stages = enabled_stages(routing_version)
    if 0 <= index < len(stages):
        return stages[index]
    return None


class RoutingService:

    @staticmethod
    async def get_version(db: AsyncSession, routing_version_id: UUID) -> RoutingVersion:
        version = await db.scalar(select(RoutingVersion).where(RoutingVersion.id == routing_version_id))
        if not version:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Routing version not found")
        return version

    @staticmethod
    async def list_versions(db: AsyncSession, model: str | None = None, trim: str | None = None) -> list[RoutingVersion]:
        query = select(RoutingVersion)
        if model:
            query = query.where(RoutingVersion.model == model)
        if trim:
            query = query.where(RoutingVersion.trim == trim)
        result = await db.scalars(
            query.order_by(RoutingVersion.model.asc(), RoutingVersion.trim.asc(), RoutingVersion.version.desc())
        )
        return list(result.all())

    @staticmethod
    async def clone_version(db: AsyncSession, body: RoutingCloneRequest, actor_id: UUID) -> RoutingVersion:
        """
        Create a new DRAFT version with the given stages.
        Existing versions are never edited; the new version number is max(model, trim) + 1.
        """
        if body.source_routing_version_id:
            await RoutingService.get_version(db, body.source_routing_version_id)

        sequences = [s.sequence for s in body.stages]
        if len(sequences) != len(set(sequences)):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Stage sequences must be unique")

        work_center_ids = {s.work_center_id for s in body.stages}
        found = set((await db.scalars(select(WorkCenter.id).where(WorkCenter.id.in_(work_center_ids)))).all())
        missing = work_center_ids - found
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Work center not found: {', '.join(sorted(str(m) for m in missing))}",
            )

        version_query = select(func.max(RoutingVersion.version)).where(RoutingVersion.model == body.model)
        if body.trim is None:
            version_query = version_query.where(RoutingVersion.trim.is_(None))
        else:
            version_query = version_query.where(RoutingVersion.trim == body.trim)
        current_max = (await db.execute(version_query)).scalar_one_or_none() or 0

        routing_version = RoutingVersion(
            model=body.model,
            trim=body.trim,
            features_json=body.features,
            version=current_max + 1,
            status=RoutingVersionStatus.DRAFT.value,
        )
        db.add(routing_version)
        await db.flush()

        for stage in sorted(body.stages, key=lambda s: s.sequence):
            db.add(RoutingStage(
                routing_version_id=routing_version.id,
                sequence=stage.sequence,
                code=stage.code,
                name=stage.name,
                enabled=stage.enabled,
                work_center_id=stage.work_center_id,
                standard_stage_seconds=stage.standard_stage_seconds,
            ))
        await db.flush()

        await log_audit(
            db, actor_id, ACTION_CLONE, "RoutingVersion", routing_version.id,
            before={"sourceRoutingVersionId": str(body.source_routing_version_id) if body.source_routing_version_id else None},
            after={"model": body.model, "trim": body.trim, "version": routing_version.version},
        )
        logger.info("Cloned routing %s/%s as version %s", body.model, body.trim, routing_version.version)

        return await db.scalar(
            select(RoutingVersion)
            .where(RoutingVersion.id == routing_version.id)
            .execution_options(populate_existing=True)
        )
