"""
Notes router.

Provides endpoints for:
- Listing, creating, reading, editing and duplicating notes
- Trash: soft delete, restore and permanent removal
- Version history
- Per-user stats and the shared / collaborated listings
"""

from fastapi import APIRouter, Query, status

from notevault.deps import CurrentUser, DBSession
from notevault.models.note import NoteStatus
from notevault.schemas import (
    ApiResponse,
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteStatsResponse,
    NoteSummary,
    NoteUpdate,
    NoteVersionsResponse,
    Pagination,
    VersionEntry,
)
from notevault.services import lifecycle, notes as note_service
from notevault.services.access import effective_permission, is_owner
from notevault.services.collaborators import list_collaborated_notes
from notevault.services.sharing import list_shared_notes

router = APIRouter(prefix="/notes", tags=["notes"])

PAGE_SIZE_MAX = 100


def _note_response(note, user) -> NoteResponse:
    return NoteResponse.from_note(
        note,
        effective_permission(note, user.id),
        include_collaborators=is_owner(note, user.id),
    )


def _listing(notes, total: int, page: int, limit: int, user) -> NoteListResponse:
    return NoteListResponse(
        notes=[NoteSummary.from_note(note, effective_permission(note, user.id)) for note in notes],
        pagination=Pagination.build(page, limit, total),
    )


# ============================================
# Collection endpoints
# ============================================

@router.get("", response_model=ApiResponse[NoteListResponse])
async def list_notes(
    user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=PAGE_SIZE_MAX),
    q: str | None = Query(default=None, max_length=200, description="Search title and content"),
    note_status: NoteStatus | None = Query(default=None, alias="status"),
    category_id: int | None = Query(default=None),
    tag: str | None = Query(default=None, max_length=50),
    is_pinned: bool | None = Query(default=None),
    is_favorite: bool | None = Query(default=None),
):
    """List the user's own notes, pinned first."""
    filters = note_service.NoteFilters(
        q=q,
        status=note_status,
        category_id=category_id,
        tag=tag,
        is_pinned=is_pinned,
        is_favorite=is_favorite,
        page=page,
        limit=limit,
    )
    notes, total = await note_service.list_notes(db, user, filters)
    return ApiResponse(data=_listing(notes, total, page, limit, user))


@router.post("", response_model=ApiResponse[NoteResponse], status_code=status.HTTP_201_CREATED)
async def create_note(body: NoteCreate, user: CurrentUser, db: DBSession):
    note = await note_service.create_note(db, user, body)
    await db.commit()
    return ApiResponse(message="Note created successfully", data=_note_response(note, user))


@router.get("/stats", response_model=ApiResponse[NoteStatsResponse])
async def note_stats(user: CurrentUser, db: DBSession):
    stats = await note_service.note_stats(db, user)
    return ApiResponse(data=NoteStatsResponse(**stats))


@router.get("/deleted", response_model=ApiResponse[NoteListResponse])
async def deleted_notes(
    user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=PAGE_SIZE_MAX),
):
    """Notes in the trash."""
    notes, total = await lifecycle.list_deleted_notes(db, user, page, limit)
    return ApiResponse(data=_listing(notes, total, page, limit, user))


@router.get("/shared", response_model=ApiResponse[NoteListResponse])
async def shared_notes(
    user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=PAGE_SIZE_MAX),
):
    """The user's notes that have an active share link."""
    notes, total = await list_shared_notes(db, user, page, limit)
    return ApiResponse(data=_listing(notes, total, page, limit, user))


@router.get("/collaborated", response_model=ApiResponse[NoteListResponse])
async def collaborated_notes(
    user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=PAGE_SIZE_MAX),
):
    """Notes other users invited this user to."""
    entries, total = await list_collaborated_notes(db, user, page, limit)
    return ApiResponse(
        data=NoteListResponse(
            notes=[NoteSummary.from_note(note, permission) for note, permission in entries],
            pagination=Pagination.build(page, limit, total),
        )
    )


# ============================================
# Single note
# ============================================

@router.get("/{note_id}", response_model=ApiResponse[NoteResponse])
async def get_note(note_id: int, user: CurrentUser, db: DBSession):
    note = await note_service.get_note_for_user(db, note_id, user)
    await db.commit()
    return ApiResponse(data=_note_response(note, user))


@router.put("/{note_id}", response_model=ApiResponse[NoteResponse])
async def update_note(note_id: int, body: NoteUpdate, user: CurrentUser, db: DBSession):
    note = await note_service.get_note(db, note_id)
    note = await note_service.update_note(db, note, user, body)
    await db.commit()
    return ApiResponse(message="Note updated successfully", data=_note_response(note, user))


@router.delete("/{note_id}", response_model=ApiResponse[NoteResponse])
async def delete_note(note_id: int, user: CurrentUser, db: DBSession):
    """Move a note to the trash."""
    note = await note_service.get_note(db, note_id)
    note = await lifecycle.soft_delete_note(db, note, user)
    await db.commit()
    return ApiResponse(message="Note moved to trash", data=_note_response(note, user))


@router.put("/{note_id}/restore", response_model=ApiResponse[NoteResponse])
async def restore_note(note_id: int, user: CurrentUser, db: DBSession):
    note = await note_service.get_note(db, note_id, include_deleted=True)
    note = await lifecycle.restore_note(db, note, user)
    await db.commit()
    return ApiResponse(message="Note restored successfully", data=_note_response(note, user))


@router.delete("/{note_id}/permanent", response_model=ApiResponse[None])
async def permanently_delete_note(note_id: int, user: CurrentUser, db: DBSession):
    note = await note_service.get_note(db, note_id, include_deleted=True)
    await lifecycle.permanently_delete_note(db, note, user)
    await db.commit()
    return ApiResponse(message="Note permanently deleted")


@router.post("/{note_id}/duplicate", response_model=ApiResponse[NoteResponse], status_code=status.HTTP_201_CREATED)
async def duplicate_note(note_id: int, user: CurrentUser, db: DBSession):
    note = await note_service.get_note(db, note_id)
    copy = await note_service.duplicate_note(db, note, user)
    await db.commit()
    return ApiResponse(message="Note duplicated successfully", data=_note_response(copy, user))


@router.get("/{note_id}/versions", response_model=ApiResponse[NoteVersionsResponse])
async def note_versions(note_id: int, user: CurrentUser, db: DBSession):
    """Current version number and the retained snapshots, oldest first."""
    note = await note_service.get_accessible_note(db, note_id, user)
    return ApiResponse(
        data=NoteVersionsResponse(
            note_id=note.id,
            current_version=note.version,
            edit_count=note.edit_count,
            previous_versions=[VersionEntry(**entry) for entry in note.previous_versions or []],
        )
    )
