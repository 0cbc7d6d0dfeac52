"""
Note model for user notes.

Notes are markdown, plain or rich-text documents that can be:
- Organized with a category and tags
- Shared publicly through an opaque share link
- Edited together with collaborators holding view/edit/admin permission
- Soft-deleted, restored, and finally purged
- Versioned: every content edit snapshots the previous title/content
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notevault.db import Base
from notevault.models.base import TimestampMixin, UTCDateTime, utcnow
from notevault.models.tag import note_tags


class ContentType(str, Enum):
    """How the note body is written."""
    PLAIN = "plain"
    MARKDOWN = "markdown"
    RICH = "rich"  # HTML from a rich-text editor


class NoteStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class NoteVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"
    SHARED = "shared"


class NotePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class SharePermission(str, Enum):
    """What a public share link lets an anonymous reader do."""
    VIEW = "view"
    EDIT = "edit"
    COMMENT = "comment"


class CollaboratorPermission(str, Enum):
    """Collaborator levels, strictly ordered view < edit < admin."""
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"

    @property
    def level(self) -> int:
        return _PERMISSION_LEVELS[self]


_PERMISSION_LEVELS = {
    CollaboratorPermission.VIEW: 1,
    CollaboratorPermission.EDIT: 2,
    CollaboratorPermission.ADMIN: 3,
}


class Note(Base, TimestampMixin):
    """User note."""

    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_author_deleted", "author_id", "is_deleted"),
        Index("ix_notes_category_id", "category_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Author - fixed at creation
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Content
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[ContentType] = mapped_column(
        String(20),
        default=ContentType.MARKDOWN,
        nullable=False,
    )
    excerpt: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    word_count: Mapped[int] = mapped_column(default=0, nullable=False)
    reading_time: Mapped[int] = mapped_column(default=0, nullable=False)  # minutes

    # Classification
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Lifecycle flags
    status: Mapped[NoteStatus] = mapped_column(String(20), default=NoteStatus.DRAFT, nullable=False)
    visibility: Mapped[NoteVisibility] = mapped_column(
        String(20),
        default=NoteVisibility.PRIVATE,
        nullable=False,
    )
    priority: Mapped[NotePriority] = mapped_column(String(20), default=NotePriority.MEDIUM, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Soft delete
    is_deleted: Mapped[bool] = mapped_column(default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Versioning - also the optimistic concurrency token for every UPDATE
    version: Mapped[int] = mapped_column(default=1, nullable=False)
    previous_versions: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)
    edit_count: Mapped[int] = mapped_column(default=0, nullable=False)

    # Share link
    is_shared: Mapped[bool] = mapped_column(default=False, nullable=False)
    share_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    share_permission: Mapped[SharePermission] = mapped_column(
        String(20),
        default=SharePermission.VIEW,
        nullable=False,
    )
    share_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    allow_comments: Mapped[bool] = mapped_column(default=True, nullable=False)

    # Activity
    view_count: Mapped[int] = mapped_column(default=0, nullable=False)
    last_viewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,  # bumped by hand on content edits only
    }

    # Relationships
    author = relationship("User", foreign_keys=[author_id], lazy="selectin")
    category = relationship("Category", lazy="selectin")
    tags = relationship("Tag", secondary=note_tags, lazy="selectin", order_by="Tag.name")
    collaborators = relationship(
        "NoteCollaborator",
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="NoteCollaborator.added_at",
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title[:30]}...', author_id={self.author_id})>"

    def is_author(self, user_id: int) -> bool:
        return self.author_id == user_id

    def collaborator_for(self, user_id: int) -> "NoteCollaborator | None":
        """Return the collaborator entry for a user, if any."""
        for collaborator in self.collaborators:
            if collaborator.user_id == user_id:
                return collaborator
        return None

    def apply_versioned_content(self, versioned, stats) -> None:
        """Assign an edit computed by services.content along with its derived stats."""
        self.title = versioned.title
        self.content = versioned.content
        self.content_type = versioned.content_type
        self.version = versioned.version
        self.edit_count = versioned.edit_count
        self.previous_versions = list(versioned.previous_versions)
        self.excerpt = stats.excerpt
        self.word_count = stats.word_count
        self.reading_time = stats.reading_time

    def soft_delete(self) -> None:
        """Mark note as deleted."""
        self.is_deleted = True
        self.deleted_at = utcnow()

    def restore(self) -> None:
        """Bring a soft-deleted note back."""
        self.is_deleted = False
        self.deleted_at = None

    def enable_sharing(
        self,
        share_id: str,
        permission: SharePermission,
        expires_at: datetime | None,
    ) -> None:
        """Issue (or rotate) the share link."""
        self.is_shared = True
        self.share_id = share_id
        self.share_permission = permission
        self.share_expires_at = expires_at

    def disable_sharing(self) -> None:
        """Revoke the share link. share_id only exists while shared."""
        self.is_shared = False
        self.share_id = None
        self.share_expires_at = None

    def share_expired(self, now: datetime | None = None) -> bool:
        if self.share_expires_at is None:
            return False
        return (now or utcnow()) >= self.share_expires_at


class NoteCollaborator(Base):
    """A non-author user granted a permission level on a note."""

    __tablename__ = "note_collaborators"
    __table_args__ = (
        # At most one entry per user per note
        UniqueConstraint("note_id", "user_id", name="uq_note_collaborator_user"),
        Index("ix_note_collaborators_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    permission: Mapped[CollaboratorPermission] = mapped_column(
        String(20),
        default=CollaboratorPermission.VIEW,
        nullable=False,
    )
    added_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    note = relationship("Note", back_populates="collaborators")
    user = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<NoteCollaborator(note_id={self.note_id}, user_id={self.user_id}, permission={self.permission})>"
