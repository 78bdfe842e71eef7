"""HULLWORKS MES — Note edit/delete endpoints (author or admin)."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_auth
from hullworks.api.v1.endpoints.work_orders import note_to_response
from hullworks.core.responses import success_response
from hullworks.schemas.common import ApiResponse
from hullworks.schemas.work_order import NoteResponse, NoteUpdate
from hullworks.services.note_service import NoteService

router = APIRouter()


@router.patch("/{note_id}", response_model=ApiResponse[NoteResponse])
async def update_note(
    note_id: UUID,
    body: NoteUpdate,
    user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    note = await NoteService.update(db, note_id, user, body.content)
    return ApiResponse(data=note_to_response(note))


@router.delete("/{note_id}")
async def delete_note(
    note_id: UUID,
    user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await NoteService.delete(db, note_id, user)
    return success_response({"message": "Note deleted"})
