# Models package
from notevault.db import Base
from notevault.models.user import User
from notevault.models.category import Category
from notevault.models.tag import Tag, note_tags
from notevault.models.note import (
    CollaboratorPermission,
    ContentType,
    Note,
    NoteCollaborator,
    NotePriority,
    NoteStatus,
    NoteVisibility,
    SharePermission,
)

__all__ = [
    "Base",
    "User",
    "Category",
    "Tag",
    "note_tags",
    "Note",
    "NoteCollaborator",
    "ContentType",
    "NoteStatus",
    "NoteVisibility",
    "NotePriority",
    "SharePermission",
    "CollaboratorPermission",
]
