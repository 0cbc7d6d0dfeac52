"""
Soft delete, restore and permanent purge of notes.

Tag usage counters only count active notes, so every delete/restore moves
them in the same transaction as the is_deleted flag.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.errors import ConflictError
from notevault.models.note import Note
from notevault.models.user import User
from notevault.services.access import require_owner
from notevault.services.notes import flush_note_changes, paginate
from notevault.services.tags import decrement_usage, increment_usage

logger = logging.getLogger(__name__)


async def soft_delete_note(db: AsyncSession, note: Note, user: User) -> Note:
    require_owner(note, user.id)
    if note.is_deleted:
        raise ConflictError("Note is already deleted")

    note.soft_delete()
    await flush_note_changes(db)
    await decrement_usage(db, [tag.id for tag in note.tags])

    logger.info(f"Note {note.id} moved to trash by user {user.id}")
    return note


async def restore_note(db: AsyncSession, note: Note, user: User) -> Note:
    require_owner(note, user.id)
    if not note.is_deleted:
        raise ConflictError("Note is not deleted")

    note.restore()
    await flush_note_changes(db)
    await increment_usage(db, [tag.id for tag in note.tags])

    logger.info(f"Note {note.id} restored by user {user.id}")
    return note


async def permanently_delete_note(db: AsyncSession, note: Note, user: User) -> None:
    """Purge a note that is already in the trash.

    Its tag counters were released when it was soft-deleted.
    """
    require_owner(note, user.id)
    if not note.is_deleted:
        raise ConflictError("Note must be deleted before it can be permanently removed")

    note_id = note.id
    await db.delete(note)
    await flush_note_changes(db)

    logger.info(f"Note {note_id} permanently deleted by user {user.id}")


async def list_deleted_notes(db: AsyncSession, user: User, page: int, limit: int) -> tuple[list[Note], int]:
    query = (
        select(Note)
        .where(Note.author_id == user.id, Note.is_deleted.is_(True))
        .order_by(Note.deleted_at.desc(), Note.id.desc())
    )
    return await paginate(db, query, page, limit)
