"""
Note authoring: create, read, update, list, duplicate and stats.

Services flush but never commit; routers commit once the whole request
succeeded so tag counters and note rows land in the same transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from notevault.errors import ConflictError, ForbiddenError, NotFoundError
from notevault.models.base import utcnow
from notevault.models.category import Category
from notevault.models.note import CollaboratorPermission, Note, NoteStatus, NoteVisibility
from notevault.models.tag import Tag
from notevault.models.user import User
from notevault.schemas import NoteCreate, NoteUpdate
from notevault.services.access import is_owner, require_access
from notevault.services.content import ContentStats, VersionedContent, apply_content_update, derive_stats
from notevault.services.tags import decrement_usage, find_or_create_tags, increment_usage
from notevault.settings import settings

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"
TITLE_MAX_LENGTH = 200


@dataclass
class NoteFilters:
    """Query options for listing a user's notes."""
    q: str | None = None
    status: NoteStatus | None = None
    category_id: int | None = None
    tag: str | None = None
    is_pinned: bool | None = None
    is_favorite: bool | None = None
    page: int = 1
    limit: int = 20


async def flush_note_changes(db: AsyncSession) -> None:
    """Flush pending writes, turning a lost version race into a Conflict."""
    try:
        await db.flush()
    except StaleDataError as e:
        logger.warning(f"Concurrent note update rejected: {e}")
        raise ConflictError("Note was modified by another request. Reload and try again") from e


async def paginate(db: AsyncSession, query: Select, page: int, limit: int) -> tuple[list, int]:
    """Run a select for one page and return (rows, total matching rows)."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), total


def stats_for(content: str, content_type) -> ContentStats:
    return derive_stats(
        content,
        content_type,
        excerpt_length=settings.excerpt_length,
        words_per_minute=settings.reading_words_per_minute,
    )


async def get_note(db: AsyncSession, note_id: int, *, include_deleted: bool = False) -> Note:
    """Fetch a note by id; soft-deleted notes are hidden unless asked for."""
    query = select(Note).where(Note.id == note_id)
    if not include_deleted:
        query = query.where(Note.is_deleted.is_(False))
    result = await db.execute(query)
    note = result.scalar_one_or_none()
    if note is None:
        raise NotFoundError("Note not found")
    return note


async def get_accessible_note(
    db: AsyncSession,
    note_id: int,
    user: User,
    required: CollaboratorPermission = CollaboratorPermission.VIEW,
) -> Note:
    note = await get_note(db, note_id)
    require_access(note, user.id, required)
    return note


async def get_owned_category(db: AsyncSession, owner: User, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None or category.owner_id != owner.id:
        raise NotFoundError("Category not found")
    return category


async def record_view(db: AsyncSession, note: Note, now: datetime | None = None) -> None:
    """Count a read without touching updated_at or the version."""
    await db.execute(
        update(Note)
        .where(Note.id == note.id)
        .values(
            view_count=Note.view_count + 1,
            last_viewed_at=now or utcnow(),
            updated_at=Note.updated_at,
        )
        .execution_options(synchronize_session="evaluate")
    )


async def get_note_for_user(db: AsyncSession, note_id: int, user: User) -> Note:
    """Read a note the user can view and count the view."""
    note = await get_accessible_note(db, note_id, user)
    await record_view(db, note)
    return note


async def create_note(db: AsyncSession, user: User, data: NoteCreate) -> Note:
    category = None
    if data.category_id is not None:
        category = await get_owned_category(db, user, data.category_id)

    tags = await find_or_create_tags(db, user.id, data.tags)
    stats = stats_for(data.content, data.content_type)

    note = Note(
        author=user,
        title=data.title,
        content=data.content,
        content_type=data.content_type,
        excerpt=stats.excerpt,
        word_count=stats.word_count,
        reading_time=stats.reading_time,
        category=category,
        tags=tags,
        collaborators=[],
        status=data.status,
        visibility=data.visibility,
        priority=data.priority,
        is_pinned=data.is_pinned,
        is_favorite=data.is_favorite,
        is_deleted=False,
        deleted_at=None,
        version=1,
        previous_versions=[],
        edit_count=0,
        is_shared=False,
        share_id=None,
        share_expires_at=None,
        view_count=0,
        last_viewed_at=None,
    )
    db.add(note)
    await flush_note_changes(db)
    await increment_usage(db, [tag.id for tag in tags])

    logger.info(f"Note {note.id} created by user {user.id}")
    return note


async def update_note(
    db: AsyncSession,
    note: Note,
    user: User,
    data: NoteUpdate,
    now: datetime | None = None,
) -> Note:
    """Apply a partial update.

    Content edits go through apply_content_update and bump the version;
    metadata edits never do. Visibility, category and tags belong to the
    author's namespace and only the author may change them.
    """
    require_access(note, user.id, CollaboratorPermission.EDIT)

    if data.expected_version is not None and data.expected_version != note.version:
        raise ConflictError(
            f"Note has changed since version {data.expected_version} "
            f"(current version is {note.version}). Reload and try again"
        )

    fields = data.model_fields_set
    author_only = {"visibility", "category_id", "tags"} & fields
    if author_only and not is_owner(note, user.id):
        raise ForbiddenError("Only the author can change visibility, category or tags")

    if data.title is not None or data.content is not None or data.content_type is not None:
        versioned = apply_content_update(
            VersionedContent.from_note(note),
            data.title,
            data.content,
            user.id,
            content_type=data.content_type,
            now=now,
            history_limit=settings.note_history_limit,
        )
        note.apply_versioned_content(versioned, stats_for(versioned.content, versioned.content_type))

    for field in ("status", "visibility", "priority", "is_pinned", "is_favorite"):
        value = getattr(data, field)
        if field in fields and value is not None:
            setattr(note, field, value)

    if "category_id" in fields:
        if data.category_id is None:
            note.category = None
        else:
            note.category = await get_owned_category(db, user, data.category_id)

    if data.tags is not None:
        await _replace_tags(db, note, user, data.tags)
        note.updated_at = utcnow()

    await flush_note_changes(db)
    logger.info(f"Note {note.id} updated by user {user.id} (version {note.version})")
    return note


async def _replace_tags(db: AsyncSession, note: Note, user: User, names: list[str]) -> None:
    """Swap the note's tags, adjusting usage counters by the difference."""
    new_tags = await find_or_create_tags(db, user.id, names)
    old_ids = {tag.id for tag in note.tags}
    new_ids = {tag.id for tag in new_tags}

    await decrement_usage(db, old_ids - new_ids)
    await increment_usage(db, new_ids - old_ids)
    note.tags = new_tags


async def duplicate_note(db: AsyncSession, note: Note, user: User) -> Note:
    """Copy a viewable note into the caller's own notes.

    The copy starts at version 1, unshared and without collaborators.
    Category and tags come along only when the caller wrote the original.
    """
    require_access(note, user.id, CollaboratorPermission.VIEW)
    own = is_owner(note, user.id)

    title = note.title[: TITLE_MAX_LENGTH - len(COPY_SUFFIX)] + COPY_SUFFIX
    tags = list(note.tags) if own else []

    copy = Note(
        author=user,
        title=title,
        content=note.content,
        content_type=note.content_type,
        excerpt=note.excerpt,
        word_count=note.word_count,
        reading_time=note.reading_time,
        category=note.category if own else None,
        tags=tags,
        collaborators=[],
        status=NoteStatus.DRAFT,
        visibility=NoteVisibility.PRIVATE,
        priority=note.priority,
        is_pinned=False,
        is_favorite=False,
        is_deleted=False,
        deleted_at=None,
        version=1,
        previous_versions=[],
        edit_count=0,
        is_shared=False,
        share_id=None,
        share_expires_at=None,
        view_count=0,
        last_viewed_at=None,
    )
    db.add(copy)
    await flush_note_changes(db)
    await increment_usage(db, [tag.id for tag in tags])

    logger.info(f"Note {note.id} duplicated as {copy.id} by user {user.id}")
    return copy


async def list_notes(db: AsyncSession, user: User, filters: NoteFilters) -> tuple[list[Note], int]:
    """The user's own active notes, pinned first then most recently updated."""
    query = select(Note).where(
        Note.author_id == user.id,
        Note.is_deleted.is_(False),
    )

    if filters.q:
        search_term = f"%{filters.q}%"
        query = query.where(
            or_(
                Note.title.ilike(search_term),
                Note.content.ilike(search_term),
            )
        )
    if filters.status is not None:
        query = query.where(Note.status == filters.status)
    if filters.category_id is not None:
        query = query.where(Note.category_id == filters.category_id)
    if filters.tag:
        query = query.where(Note.tags.any(Tag.name == filters.tag.strip()))
    if filters.is_pinned is not None:
        query = query.where(Note.is_pinned.is_(filters.is_pinned))
    if filters.is_favorite is not None:
        query = query.where(Note.is_favorite.is_(filters.is_favorite))

    query = query.order_by(Note.is_pinned.desc(), Note.updated_at.desc(), Note.id.desc())
    return await paginate(db, query, filters.page, filters.limit)


def _count_if(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def note_stats(db: AsyncSession, user: User) -> dict:
    """Totals over the user's notes. Everything but ``deleted`` counts active notes only."""
    active = Note.is_deleted.is_(False)
    query = select(
        _count_if(active).label("total"),
        _count_if(active & (Note.status == NoteStatus.DRAFT)).label("draft"),
        _count_if(active & (Note.status == NoteStatus.PUBLISHED)).label("published"),
        _count_if(active & (Note.status == NoteStatus.ARCHIVED)).label("archived"),
        _count_if(active & Note.is_pinned.is_(True)).label("pinned"),
        _count_if(active & Note.is_favorite.is_(True)).label("favorite"),
        _count_if(active & Note.is_shared.is_(True)).label("shared"),
        _count_if(Note.is_deleted.is_(True)).label("deleted"),
        func.coalesce(func.sum(case((active, Note.word_count), else_=0)), 0).label("total_words"),
    ).where(Note.author_id == user.id)

    row = (await db.execute(query)).one()
    return {key: int(value) for key, value in row._mapping.items()}
