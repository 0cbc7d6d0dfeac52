"""
Ownership and collaborator permission checks for notes.

The author always has full access. Anyone else needs a collaborator entry
whose level meets the requirement, with view < edit < admin.

Callers with no relationship to a note at all are told it does not exist
(NotFoundError); collaborators without enough permission get ForbiddenError.
"""

from notevault.errors import ForbiddenError, NotFoundError
from notevault.models.note import CollaboratorPermission, Note


def permission_level(permission: CollaboratorPermission | str | None) -> int:
    """Numeric level for a permission name; unknown or missing is 0."""
    if permission is None:
        return 0
    try:
        return CollaboratorPermission(permission).level
    except ValueError:
        return 0


def is_owner(note: Note, user_id: int) -> bool:
    return note.author_id == user_id


def effective_permission(note: Note, user_id: int) -> CollaboratorPermission | None:
    """The permission a user holds on a note; the author counts as admin."""
    if is_owner(note, user_id):
        return CollaboratorPermission.ADMIN
    collaborator = note.collaborator_for(user_id)
    if collaborator is None:
        return None
    return CollaboratorPermission(collaborator.permission)


def check_permission(
    note: Note,
    user_id: int,
    required: CollaboratorPermission | str = CollaboratorPermission.VIEW,
) -> bool:
    """Return True if the user may perform an operation needing ``required``."""
    if is_owner(note, user_id):
        return True
    collaborator = note.collaborator_for(user_id)
    if collaborator is None:
        return False
    return permission_level(collaborator.permission) >= permission_level(required)


def require_access(
    note: Note,
    user_id: int,
    required: CollaboratorPermission | str = CollaboratorPermission.VIEW,
) -> None:
    """Raise unless the user holds ``required`` on the note."""
    if check_permission(note, user_id, required):
        return
    if note.collaborator_for(user_id) is None:
        raise NotFoundError("Note not found")
    raise ForbiddenError(f"Access denied. {CollaboratorPermission(required).value} permission required")


def require_owner(note: Note, user_id: int) -> None:
    """Raise unless the user authored the note."""
    if is_owner(note, user_id):
        return
    if note.collaborator_for(user_id) is None:
        raise NotFoundError("Note not found")
    raise ForbiddenError("Access denied. You do not own this note")
