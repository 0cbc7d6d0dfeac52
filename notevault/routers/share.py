"""
Share link endpoints.

``router`` holds the author-only management endpoints under /notes/{id}/share;
``public_router`` resolves tokens for anonymous readers.
"""

from fastapi import APIRouter

from notevault.deps import CurrentUser, DBSession
from notevault.schemas import (
    ApiResponse,
    ShareCreate,
    ShareLinkResponse,
    ShareSettingsResponse,
    SharedNoteResponse,
    ShareUpdate,
    share_url_for,
)
from notevault.services import sharing
from notevault.services.notes import get_note

router = APIRouter(prefix="/notes", tags=["sharing"])
public_router = APIRouter(prefix="/shared", tags=["sharing"])


@router.post("/{note_id}/share", response_model=ApiResponse[ShareLinkResponse])
async def create_share_link(note_id: int, user: CurrentUser, db: DBSession, body: ShareCreate | None = None):
    """Create a share link, or rotate the token of an existing one."""
    body = body or ShareCreate()
    note = await get_note(db, note_id)
    note = await sharing.create_share_link(db, note, user, body.permission, body.expires_in_ms)
    await db.commit()
    return ApiResponse(
        message="Share link created successfully",
        data=ShareLinkResponse(
            share_id=note.share_id,
            share_url=share_url_for(note.share_id),
            permission=note.share_permission,
            expires_at=note.share_expires_at,
        ),
    )


@router.put("/{note_id}/share", response_model=ApiResponse[ShareSettingsResponse])
async def update_share_settings(note_id: int, body: ShareUpdate, user: CurrentUser, db: DBSession):
    note = await get_note(db, note_id)
    note = await sharing.update_share_settings(db, note, user, body)
    await db.commit()
    return ApiResponse(message="Share settings updated successfully", data=ShareSettingsResponse.from_note(note))


@router.delete("/{note_id}/share", response_model=ApiResponse[ShareSettingsResponse])
async def revoke_share_link(note_id: int, user: CurrentUser, db: DBSession):
    note = await get_note(db, note_id)
    note = await sharing.revoke_share_link(db, note, user)
    await db.commit()
    return ApiResponse(message="Share link revoked successfully", data=ShareSettingsResponse.from_note(note))


@public_router.get("/{share_id}", response_model=ApiResponse[SharedNoteResponse])
async def get_shared_note(share_id: str, db: DBSession):
    """Read a note through its share link. No authentication."""
    note = await sharing.resolve_shared_note(db, share_id)
    await db.commit()
    return ApiResponse(data=SharedNoteResponse.from_note(note))
