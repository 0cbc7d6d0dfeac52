"""Tests for soft delete, restore, purge and tag usage accounting."""

import pytest

from notevault.errors import ConflictError, ForbiddenError, NotFoundError
from notevault.models.note import CollaboratorPermission, Note
from notevault.schemas import NoteUpdate
from notevault.services.collaborators import add_collaborator
from notevault.services.lifecycle import (
    list_deleted_notes,
    permanently_delete_note,
    restore_note,
    soft_delete_note,
)
from notevault.services.notes import get_note, list_notes, NoteFilters, update_note
from notevault.services.tags import get_usage_counts

SNAPSHOT_FIELDS = (
    "title", "content", "content_type", "excerpt", "word_count", "reading_time",
    "category_id", "status", "visibility", "priority", "is_pinned", "is_favorite",
    "version", "previous_versions", "edit_count", "is_shared", "share_id",
    "share_permission", "allow_comments", "view_count", "author_id",
)


def snapshot(note: Note) -> dict:
    return {field: getattr(note, field) for field in SNAPSHOT_FIELDS}


async def test_soft_delete_hides_note(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)

    await soft_delete_note(db, note, author)

    assert note.is_deleted is True
    assert note.deleted_at is not None
    with pytest.raises(NotFoundError):
        await get_note(db, note.id)
    notes, total = await list_notes(db, author, NoteFilters())
    assert total == 0
    deleted, deleted_total = await list_deleted_notes(db, author, page=1, limit=20)
    assert deleted_total == 1
    assert deleted[0].id == note.id


async def test_delete_then_restore_round_trip(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author, tags=["work", "ideas"], content="Hello")
    await update_note(db, note, author, NoteUpdate(content="Hello world"))
    tag_ids = [tag.id for tag in note.tags]
    before = snapshot(note)
    counts_before = await get_usage_counts(db, tag_ids)

    await soft_delete_note(db, note, author)
    assert await get_usage_counts(db, tag_ids) == {tag_id: 0 for tag_id in tag_ids}

    await restore_note(db, note, author)

    assert snapshot(note) == before
    assert note.is_deleted is False
    assert note.deleted_at is None
    assert await get_usage_counts(db, tag_ids) == counts_before


async def test_usage_counts_across_notes(db, make_user, make_note):
    author = await make_user()
    first = await make_note(author, tags=["shared"])
    await make_note(author, tags=["shared"])
    tag_id = first.tags[0].id

    assert await get_usage_counts(db, [tag_id]) == {tag_id: 2}

    await soft_delete_note(db, first, author)

    assert await get_usage_counts(db, [tag_id]) == {tag_id: 1}


async def test_restore_active_note_conflicts(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)

    with pytest.raises(ConflictError):
        await restore_note(db, note, author)


async def test_delete_twice_conflicts(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)
    await soft_delete_note(db, note, author)

    with pytest.raises(ConflictError):
        await soft_delete_note(db, note, author)


async def test_permanent_delete_requires_trash(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)

    with pytest.raises(ConflictError):
        await permanently_delete_note(db, note, author)


async def test_permanent_delete_removes_note(db, make_user, make_note):
    author = await make_user()
    friend = await make_user()
    note = await make_note(author, tags=["gone"])
    await add_collaborator(db, note, author, friend.email)
    note_id = note.id
    tag_id = note.tags[0].id
    await soft_delete_note(db, note, author)

    await permanently_delete_note(db, note, author)

    with pytest.raises(NotFoundError):
        await get_note(db, note_id, include_deleted=True)
    # Released at soft delete, not touched again
    assert await get_usage_counts(db, [tag_id]) == {tag_id: 0}


async def test_collaborator_cannot_delete(db, make_user, make_note):
    author = await make_user()
    admin = await make_user()
    note = await make_note(author)
    await add_collaborator(db, note, author, admin.email, CollaboratorPermission.ADMIN)

    with pytest.raises(ForbiddenError):
        await soft_delete_note(db, note, admin)
    assert note.is_deleted is False
