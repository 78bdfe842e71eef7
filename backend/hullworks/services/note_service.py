"""HULLWORKS MES — NoteService: per-work-order note threads."""
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser
from hullworks.db.base import utcnow
from hullworks.models.work_order import WorkOrderNote
from hullworks.services.work_order_service import WorkOrderService


class NoteService:

    @staticmethod
    async def list_notes(db: AsyncSession, work_order_id: UUID) -> list[WorkOrderNote]:
        await WorkOrderService.get(db, work_order_id)
        result = await db.scalars(
            select(WorkOrderNote)
            .where(WorkOrderNote.work_order_id == work_order_id)
            .order_by(WorkOrderNote.created_at.desc())
        )
        return list(result.all())

    @staticmethod
    async def create(db: AsyncSession, work_order_id: UUID, user_id: UUID, content: str) -> WorkOrderNote:
        await WorkOrderService.get(db, work_order_id)
        note = WorkOrderNote(work_order_id=work_order_id, user_id=user_id, content=content.strip())
        db.add(note)
        await db.flush()
        return await db.scalar(
            select(WorkOrderNote).where(WorkOrderNote.id == note.id).execution_options(populate_existing=True)
        )

    @staticmethod
    async def _owned(db: AsyncSession, note_id: UUID, user: CurrentUser) -> WorkOrderNote:
        note = await db.scalar(select(WorkOrderNote).where(WorkOrderNote.id == note_id))
        if not note:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        if note.user_id != user.id and not user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the author or an admin can modify this note")
        return note

    @staticmethod
    async def update(db: AsyncSession, note_id: UUID, user: CurrentUser, content: str) -> WorkOrderNote:
        note = await NoteService._owned(db, note_id, user)
        note.content = content.strip()
        note.updated_at = utcnow()
        await db.flush()
        return note

    @staticmethod
    async def delete(db: AsyncSession, note_id: UUID, user: CurrentUser) -> None:
        note = await NoteService._owned(db, note_id, user)
        await db.delete(note)
        await db.flush()
