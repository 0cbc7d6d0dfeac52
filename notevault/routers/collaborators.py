"""
Collaborator management for a note. Everything here is author-only.
"""

from fastapi import APIRouter, status

from notevault.deps import CurrentUser, DBSession
from notevault.schemas import (
    ApiResponse,
    CollaboratorAdd,
    CollaboratorListResponse,
    CollaboratorResponse,
    CollaboratorUpdate,
)
from notevault.services import collaborators as collaborator_service
from notevault.services.access import require_owner
from notevault.services.notes import get_note

router = APIRouter(prefix="/notes/{note_id}/collaborators", tags=["collaborators"])


@router.get("", response_model=ApiResponse[CollaboratorListResponse])
async def list_collaborators(note_id: int, user: CurrentUser, db: DBSession):
    note = await get_note(db, note_id)
    require_owner(note, user.id)
    return ApiResponse(data=CollaboratorListResponse.from_note(note))


@router.post("", response_model=ApiResponse[CollaboratorResponse], status_code=status.HTTP_201_CREATED)
async def add_collaborator(note_id: int, body: CollaboratorAdd, user: CurrentUser, db: DBSession):
    note = await get_note(db, note_id)
    collaborator = await collaborator_service.add_collaborator(db, note, user, body.email, body.permission)
    await db.commit()
    return ApiResponse(
        message="Collaborator added successfully",
        data=CollaboratorResponse.from_collaborator(collaborator),
    )


@router.put("/{user_id}", response_model=ApiResponse[CollaboratorResponse])
async def update_collaborator(note_id: int, user_id: int, body: CollaboratorUpdate, user: CurrentUser, db: DBSession):
    note = await get_note(db, note_id)
    collaborator = await collaborator_service.update_collaborator_permission(
        db, note, user, user_id, body.permission
    )
    await db.commit()
    return ApiResponse(
        message="Collaborator permission updated successfully",
        data=CollaboratorResponse.from_collaborator(collaborator),
    )


@router.delete("/{user_id}", response_model=ApiResponse[None])
async def remove_collaborator(note_id: int, user_id: int, user: CurrentUser, db: DBSession):
    note = await get_note(db, note_id)
    await collaborator_service.remove_collaborator(db, note, user, user_id)
    await db.commit()
    return ApiResponse(message="Collaborator removed successfully")
