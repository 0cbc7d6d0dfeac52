"""
Public share links for notes.

A share link is an opaque token stored in ``notes.share_id``. While a note
is shared anyone holding the token can read it through /shared/{share_id}
until the optional expiry passes. Only the author manages the link.
"""

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.errors import ConflictError, GoneError, NotFoundError
from notevault.models.base import utcnow
from notevault.models.note import Note, SharePermission
from notevault.models.user import User
from notevault.schemas import ShareUpdate
from notevault.services.access import require_owner
from notevault.services.notes import flush_note_changes, paginate, record_view
from notevault.settings import settings

logger = logging.getLogger(__name__)


def generate_share_id() -> str:
    """Unguessable URL-safe token."""
    return secrets.token_urlsafe(settings.share_token_bytes)


def _expiry_from(expires_in_ms: int | None, now: datetime) -> datetime | None:
    if expires_in_ms is None:
        return None
    return now + timedelta(milliseconds=expires_in_ms)


async def create_share_link(
    db: AsyncSession,
    note: Note,
    user: User,
    permission: SharePermission = SharePermission.VIEW,
    expires_in_ms: int | None = None,
    now: datetime | None = None,
) -> Note:
    """Issue a share link. Calling it on a shared note rotates the token."""
    require_owner(note, user.id)
    now = now or utcnow()

    rotated = note.is_shared
    note.enable_sharing(
        share_id=generate_share_id(),
        permission=permission,
        expires_at=_expiry_from(expires_in_ms, now),
    )
    await flush_note_changes(db)

    action = "rotated" if rotated else "created"
    logger.info(f"Share link {action} for note {note.id} by user {user.id} (permission={permission.value})")
    return note


async def revoke_share_link(db: AsyncSession, note: Note, user: User) -> Note:
    require_owner(note, user.id)
    if not note.is_shared:
        raise ConflictError("Note is not currently shared")

    note.disable_sharing()
    await flush_note_changes(db)

    logger.info(f"Share link revoked for note {note.id} by user {user.id}")
    return note


async def update_share_settings(
    db: AsyncSession,
    note: Note,
    user: User,
    changes: ShareUpdate,
    now: datetime | None = None,
) -> Note:
    """Change permission, expiry or comments on an existing link.

    Only fields present in the request are applied. ``expires_in_ms``
    sent as null removes the expiry. The token itself never changes here.
    """
    require_owner(note, user.id)
    if not note.is_shared:
        raise ConflictError("Note is not currently shared")

    fields = changes.model_fields_set
    if "permission" in fields and changes.permission is not None:
        note.share_permission = changes.permission
    if "expires_in_ms" in fields:
        note.share_expires_at = _expiry_from(changes.expires_in_ms, now or utcnow())
    if "allow_comments" in fields and changes.allow_comments is not None:
        note.allow_comments = changes.allow_comments

    await flush_note_changes(db)
    logger.info(f"Share settings updated for note {note.id} by user {user.id}")
    return note


async def resolve_shared_note(db: AsyncSession, share_id: str, now: datetime | None = None) -> Note:
    """Look up a note by share token for an anonymous reader.

    Unknown tokens, revoked links and deleted notes are NotFound; a link
    past its expiry is Gone. A successful read counts as a view.
    """
    now = now or utcnow()
    result = await db.execute(
        select(Note).where(
            Note.share_id == share_id,
            Note.is_shared.is_(True),
            Note.is_deleted.is_(False),
        )
    )
    note = result.scalar_one_or_none()
    if note is None:
        raise NotFoundError("Shared note not found or sharing has been disabled")

    if note.share_expired(now):
        raise GoneError("This share link has expired")

    await record_view(db, note, now)
    return note


async def list_shared_notes(db: AsyncSession, user: User, page: int, limit: int) -> tuple[list[Note], int]:
    """The author's notes that currently have a share link."""
    query = (
        select(Note)
        .where(
            Note.author_id == user.id,
            Note.is_shared.is_(True),
            Note.is_deleted.is_(False),
        )
        .order_by(Note.updated_at.desc(), Note.id.desc())
    )
    return await paginate(db, query, page, limit)
