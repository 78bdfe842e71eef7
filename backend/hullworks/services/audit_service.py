"""HULLWORKS MES — Audit log writer."""
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.models.audit import AuditLog

logger = logging.getLogger(__name__)

# ── Audit action constants ────────────────────────────────────────────────────
ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_RELEASE = "RELEASE"
ACTION_HOLD = "HOLD"
ACTION_UNHOLD = "UNHOLD"
ACTION_CANCEL = "CANCEL"
ACTION_UNCANCEL = "UNCANCEL"
ACTION_RESTORE = "RESTORE"
ACTION_CLONE = "CLONE"


async def log_audit(
    db: AsyncSession,
    actor_id: UUID | None,
    action: str,
    model: str,
    model_id: UUID,
    before: dict | None = None,
    after: dict | None = None,
) -> AuditLog:
    """Write an audit log entry. Flushed so later reads in the same transaction see it."""
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        model=model,
        model_id=model_id,
        before=before,
        after=after,
    )
    db.add(entry)
    await db.flush()
    return entry


async def latest_audit(db: AsyncSession, model: str, model_id: UUID, action: str) -> AuditLog | None:
    return await db.scalar(
        select(AuditLog)
        .where(AuditLog.model == model, AuditLog.model_id == model_id, AuditLog.action == action)
        .order_by(AuditLog.created_at.desc())
        .limit(1)
    )
