"""Tests for the collaborator registry."""

import pytest
from sqlalchemy import func, select

from notevault.errors import ConflictError, ForbiddenError, NotFoundError
from notevault.models.note import CollaboratorPermission, NoteCollaborator
from notevault.schemas import NoteUpdate
from notevault.services.collaborators import (
    add_collaborator,
    list_collaborated_notes,
    remove_collaborator,
    update_collaborator_permission,
)
from notevault.services.lifecycle import soft_delete_note
from notevault.services.notes import update_note


async def _collaborator_rows(db, note_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(NoteCollaborator).where(NoteCollaborator.note_id == note_id)
    )
    return result.scalar()


async def test_add_collaborator_by_email(db, make_user, make_note):
    author = await make_user()
    friend = await make_user()
    note = await make_note(author)

    collaborator = await add_collaborator(db, note, author, friend.email.upper(), CollaboratorPermission.EDIT)

    assert collaborator.user_id == friend.id
    assert collaborator.permission == CollaboratorPermission.EDIT
    assert note.collaborator_for(friend.id) is collaborator


async def test_add_unknown_email(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)

    with pytest.raises(NotFoundError):
        await add_collaborator(db, note, author, "nobody@example.com")


async def test_author_cannot_be_collaborator(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)

    with pytest.raises(ConflictError):
        await add_collaborator(db, note, author, author.email)
    assert await _collaborator_rows(db, note.id) == 0


async def test_adding_twice_keeps_one_entry(db, make_user, make_note):
    author = await make_user()
    friend = await make_user()
    note = await make_note(author)
    await add_collaborator(db, note, author, friend.email)

    with pytest.raises(ConflictError):
        await add_collaborator(db, note, author, friend.email, CollaboratorPermission.ADMIN)

    assert await _collaborator_rows(db, note.id) == 1
    assert note.collaborator_for(friend.id).permission == CollaboratorPermission.VIEW


async def test_only_author_adds(db, make_user, make_note):
    author = await make_user()
    admin = await make_user()
    other = await make_user()
    note = await make_note(author)
    await add_collaborator(db, note, author, admin.email, CollaboratorPermission.ADMIN)

    with pytest.raises(ForbiddenError):
        await add_collaborator(db, note, admin, other.email)


async def test_update_permission(db, make_user, make_note):
    author = await make_user()
    friend = await make_user()
    note = await make_note(author)
    await add_collaborator(db, note, author, friend.email)

    collaborator = await update_collaborator_permission(db, note, author, friend.id, CollaboratorPermission.EDIT)

    assert collaborator.permission == CollaboratorPermission.EDIT


async def test_update_missing_collaborator(db, make_user, make_note):
    author = await make_user()
    note = await make_note(author)

    with pytest.raises(NotFoundError):
        await update_collaborator_permission(db, note, author, 12345, CollaboratorPermission.EDIT)


async def test_remove_collaborator(db, make_user, make_note):
    author = await make_user()
    friend = await make_user()
    note = await make_note(author)
    await add_collaborator(db, note, author, friend.email)

    await remove_collaborator(db, note, author, friend.id)

    assert note.collaborator_for(friend.id) is None
    assert await _collaborator_rows(db, note.id) == 0
    with pytest.raises(NotFoundError):
        await remove_collaborator(db, note, author, friend.id)


async def test_viewer_cannot_edit_but_editor_can(db, make_user, make_note):
    author = await make_user()
    viewer = await make_user()
    editor = await make_user()
    note = await make_note(author, content="Hello")
    await add_collaborator(db, note, author, viewer.email, CollaboratorPermission.VIEW)
    await add_collaborator(db, note, author, editor.email, CollaboratorPermission.EDIT)

    with pytest.raises(ForbiddenError):
        await update_note(db, note, viewer, NoteUpdate(content="Hijacked"))

    await update_note(db, note, editor, NoteUpdate(content="Hello world"))
    assert note.version == 2
    assert note.previous_versions[0]["modified_by"] == editor.id


async def test_editor_cannot_retag(db, make_user, make_note):
    author = await make_user()
    editor = await make_user()
    note = await make_note(author, tags=["work"])
    await add_collaborator(db, note, author, editor.email, CollaboratorPermission.EDIT)

    with pytest.raises(ForbiddenError):
        await update_note(db, note, editor, NoteUpdate(tags=["mine"]))


async def test_list_collaborated_notes(db, make_user, make_note):
    author = await make_user()
    friend = await make_user()
    shared = await make_note(author, title="Together")
    trashed = await make_note(author, title="Trashed")
    await make_note(author, title="Alone")
    await add_collaborator(db, shared, author, friend.email, CollaboratorPermission.EDIT)
    await add_collaborator(db, trashed, author, friend.email)
    await soft_delete_note(db, trashed, author)

    entries, total = await list_collaborated_notes(db, friend, page=1, limit=20)

    assert total == 1
    note, permission = entries[0]
    assert note.id == shared.id
    assert permission == CollaboratorPermission.EDIT
