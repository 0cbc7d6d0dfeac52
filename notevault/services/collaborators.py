"""
Collaborator registry: who besides the author may view, edit or administer a note.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.errors import ConflictError, NotFoundError
from notevault.models.note import CollaboratorPermission, Note, NoteCollaborator
from notevault.models.user import User
from notevault.services.access import require_owner
from notevault.services.notes import flush_note_changes, paginate

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def add_collaborator(
    db: AsyncSession,
    note: Note,
    user: User,
    email: str,
    permission: CollaboratorPermission = CollaboratorPermission.VIEW,
) -> NoteCollaborator:
    """Grant a registered user access to the note.

    Adding the author, or someone who already collaborates, is a Conflict;
    use update_collaborator_permission to change an existing entry.
    """
    require_owner(note, user.id)

    target = await get_user_by_email(db, email)
    if target is None or not target.is_active:
        raise NotFoundError("User not found")

    if target.id == note.author_id:
        raise ConflictError("The author cannot be added as a collaborator")
    if note.collaborator_for(target.id) is not None:
        raise ConflictError("User is already a collaborator on this note")

    collaborator = NoteCollaborator(user_id=target.id, permission=permission)
    collaborator.user = target
    note.collaborators.append(collaborator)
    await flush_note_changes(db)

    logger.info(
        f"User {target.id} added as {permission.value} collaborator on note {note.id} by user {user.id}"
    )
    return collaborator


def _require_collaborator(note: Note, target_user_id: int) -> NoteCollaborator:
    collaborator = note.collaborator_for(target_user_id)
    if collaborator is None:
        raise NotFoundError("Collaborator not found")
    return collaborator


async def update_collaborator_permission(
    db: AsyncSession,
    note: Note,
    user: User,
    target_user_id: int,
    permission: CollaboratorPermission,
) -> NoteCollaborator:
    require_owner(note, user.id)
    collaborator = _require_collaborator(note, target_user_id)

    collaborator.permission = permission
    await flush_note_changes(db)

    logger.info(
        f"Collaborator {target_user_id} on note {note.id} set to {permission.value} by user {user.id}"
    )
    return collaborator


async def remove_collaborator(db: AsyncSession, note: Note, user: User, target_user_id: int) -> None:
    require_owner(note, user.id)
    collaborator = _require_collaborator(note, target_user_id)

    note.collaborators.remove(collaborator)
    await flush_note_changes(db)

    logger.info(f"Collaborator {target_user_id} removed from note {note.id} by user {user.id}")


async def list_collaborated_notes(
    db: AsyncSession,
    user: User,
    page: int,
    limit: int,
) -> tuple[list[tuple[Note, CollaboratorPermission]], int]:
    """Active notes other users shared with this user, with the user's permission on each."""
    query = (
        select(Note)
        .join(NoteCollaborator, NoteCollaborator.note_id == Note.id)
        .where(
            NoteCollaborator.user_id == user.id,
            Note.is_deleted.is_(False),
        )
        .order_by(Note.updated_at.desc(), Note.id.desc())
    )
    notes, total = await paginate(db, query, page, limit)
    return [(note, CollaboratorPermission(note.collaborator_for(user.id).permission)) for note in notes], total
