"""
Request and response models for the JSON API.

Every response is wrapped in the envelope ``{success, message, data}``;
errors use ``{success: false, message, errors?}`` (see main.py).
"""

import re
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

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
from notevault.settings import settings

T = TypeVar("T")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"
# Share links last at most ten years
MAX_SHARE_EXPIRY_MS = 10 * 365 * 24 * 60 * 60 * 1000


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please provide a valid email address")
    return value


def share_url_for(share_id: str) -> str:
    return f"{settings.base_url.rstrip('/')}/shared/{share_id}"


# -------------------------------------------------------------------------
# Envelope
# -------------------------------------------------------------------------

class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    message: str = "Success"
    data: T | None = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


# -------------------------------------------------------------------------
# Auth
# -------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: str
    password: str
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)

    _email = field_validator("email")(_normalize_email)


class LoginRequest(BaseModel):
    email: str
    password: str

    _email = field_validator("email")(_normalize_email)


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    display_name: str


class AuthResponse(BaseModel):
    user: UserSummary
    session_token: str
    expires_at: datetime | None = None


# -------------------------------------------------------------------------
# Tags & categories
# -------------------------------------------------------------------------

class TagSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    color: str = Field(default="#3B82F6", pattern=HEX_COLOR_PATTERN)
    parent_id: int | None = None
    sort_order: int = 0

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v:
            raise ValueError("Category name is required")
        return v


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    parent_id: int | None = None
    sort_order: int | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    color: str
    parent_id: int | None = None
    sort_order: int
    path: str | None = None
    created_at: datetime
    updated_at: datetime


# -------------------------------------------------------------------------
# Notes
# -------------------------------------------------------------------------

class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    content_type: ContentType = ContentType.MARKDOWN
    category_id: int | None = None
    tags: list[str] = Field(default_factory=list, max_length=50)
    status: NoteStatus = NoteStatus.DRAFT
    visibility: NoteVisibility = NoteVisibility.PRIVATE
    priority: NotePriority = NotePriority.MEDIUM
    is_pinned: bool = False
    is_favorite: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v:
            raise ValueError("Note title is required")
        return v

    @field_validator("content")
    @classmethod
    def require_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Note content is required")
        return v

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: list[str]) -> list[str]:
        for name in v:
            if len(name.strip()) > 50:
                raise ValueError("Tag name cannot exceed 50 characters")
        return v


class NoteUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    content_type: ContentType | None = None
    category_id: int | None = None
    tags: list[str] | None = Field(default=None, max_length=50)
    status: NoteStatus | None = None
    visibility: NoteVisibility | None = None
    priority: NotePriority | None = None
    is_pinned: bool | None = None
    is_favorite: bool | None = None
    # Version the client last saw; a mismatch is rejected with 409
    expected_version: int | None = Field(default=None, ge=1)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title must be between 1 and 200 characters")
        return v

    @field_validator("content")
    @classmethod
    def require_content(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Content cannot be empty")
        return v


class ShareSettingsResponse(BaseModel):
    is_shared: bool
    share_id: str | None = None
    share_url: str | None = None
    permission: SharePermission
    expires_at: datetime | None = None
    allow_comments: bool

    @classmethod
    def from_note(cls, note: Note) -> "ShareSettingsResponse":
        return cls(
            is_shared=note.is_shared,
            share_id=note.share_id,
            share_url=share_url_for(note.share_id) if note.share_id else None,
            permission=note.share_permission,
            expires_at=note.share_expires_at,
            allow_comments=note.allow_comments,
        )


class CollaboratorResponse(BaseModel):
    user: UserSummary
    permission: CollaboratorPermission
    added_at: datetime

    @classmethod
    def from_collaborator(cls, collaborator: NoteCollaborator) -> "CollaboratorResponse":
        return cls(
            user=UserSummary.model_validate(collaborator.user),
            permission=collaborator.permission,
            added_at=collaborator.added_at,
        )


class NoteSummary(BaseModel):
    """List entry: everything but the body and collaborator detail."""
    id: int
    title: str
    excerpt: str
    content_type: ContentType
    word_count: int
    reading_time: int
    author: UserSummary
    category: CategorySummary | None = None
    tags: list[TagSummary] = []
    status: NoteStatus
    visibility: NoteVisibility
    priority: NotePriority
    is_pinned: bool
    is_favorite: bool
    is_shared: bool
    is_deleted: bool
    deleted_at: datetime | None = None
    version: int
    view_count: int
    user_permission: CollaboratorPermission | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_note(cls, note: Note, user_permission: CollaboratorPermission | None = None) -> "NoteSummary":
        return cls(
            id=note.id,
            title=note.title,
            excerpt=note.excerpt,
            content_type=note.content_type,
            word_count=note.word_count,
            reading_time=note.reading_time,
            author=UserSummary.model_validate(note.author),
            category=CategorySummary.model_validate(note.category) if note.category else None,
            tags=[TagSummary.model_validate(tag) for tag in note.tags],
            status=note.status,
            visibility=note.visibility,
            priority=note.priority,
            is_pinned=note.is_pinned,
            is_favorite=note.is_favorite,
            is_shared=note.is_shared,
            is_deleted=note.is_deleted,
            deleted_at=note.deleted_at,
            version=note.version,
            view_count=note.view_count,
            user_permission=user_permission,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )


class NoteResponse(NoteSummary):
    content: str
    edit_count: int
    last_viewed_at: datetime | None = None
    share: ShareSettingsResponse
    collaborators: list[CollaboratorResponse] = []

    @classmethod
    def from_note(
        cls,
        note: Note,
        user_permission: CollaboratorPermission | None = None,
        include_collaborators: bool = True,
    ) -> "NoteResponse":
        """Full note. Collaborator details are left out for anyone but the author."""
        summary = NoteSummary.from_note(note, user_permission)
        return cls(
            **summary.model_dump(),
            content=note.content,
            edit_count=note.edit_count,
            last_viewed_at=note.last_viewed_at,
            share=ShareSettingsResponse.from_note(note),
            collaborators=(
                [CollaboratorResponse.from_collaborator(c) for c in note.collaborators]
                if include_collaborators else []
            ),
        )


class NoteListResponse(BaseModel):
    notes: list[NoteSummary]
    pagination: Pagination


class VersionEntry(BaseModel):
    version: int
    title: str
    content: str
    modified_at: datetime
    modified_by: int | None = None


class NoteVersionsResponse(BaseModel):
    note_id: int
    current_version: int
    edit_count: int
    previous_versions: list[VersionEntry]


class NoteStatsResponse(BaseModel):
    total: int
    draft: int
    published: int
    archived: int
    pinned: int
    favorite: int
    shared: int
    deleted: int
    total_words: int


# -------------------------------------------------------------------------
# Sharing
# -------------------------------------------------------------------------

class ShareCreate(BaseModel):
    permission: SharePermission = SharePermission.VIEW
    expires_in_ms: int | None = Field(default=None, gt=0, le=MAX_SHARE_EXPIRY_MS)


class ShareUpdate(BaseModel):
    """Partial update. Sending ``expires_in_ms: null`` removes the expiry."""
    permission: SharePermission | None = None
    expires_in_ms: int | None = Field(default=None, gt=0, le=MAX_SHARE_EXPIRY_MS)
    allow_comments: bool | None = None


class ShareLinkResponse(BaseModel):
    share_id: str
    share_url: str
    permission: SharePermission
    expires_at: datetime | None = None


class SharedAuthor(BaseModel):
    """Display-only author info for anonymous readers."""
    name: str
    first_name: str
    last_name: str


class SharedNoteResponse(BaseModel):
    id: int
    title: str
    content: str
    content_type: ContentType
    excerpt: str
    word_count: int
    reading_time: int
    author: SharedAuthor
    category: CategorySummary | None = None
    tags: list[TagSummary] = []
    share_permission: SharePermission
    allow_comments: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_note(cls, note: Note) -> "SharedNoteResponse":
        permission = SharePermission(note.share_permission)
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            content_type=note.content_type,
            excerpt=note.excerpt,
            word_count=note.word_count,
            reading_time=note.reading_time,
            author=SharedAuthor(
                name=note.author.display_name,
                first_name=note.author.first_name,
                last_name=note.author.last_name,
            ),
            category=CategorySummary.model_validate(note.category) if note.category else None,
            tags=[TagSummary.model_validate(tag) for tag in note.tags],
            share_permission=permission,
            # Comments need a link that permits them
            allow_comments=note.allow_comments and permission != SharePermission.VIEW,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )


# -------------------------------------------------------------------------
# Collaborators
# -------------------------------------------------------------------------

class CollaboratorAdd(BaseModel):
    email: str
    permission: CollaboratorPermission = CollaboratorPermission.VIEW

    _email = field_validator("email")(_normalize_email)


class CollaboratorUpdate(BaseModel):
    permission: CollaboratorPermission


class CollaboratorListResponse(BaseModel):
    collaborators: list[CollaboratorResponse]

    @classmethod
    def from_note(cls, note: Note) -> "CollaboratorListResponse":
        return cls(collaborators=[CollaboratorResponse.from_collaborator(c) for c in note.collaborators])
