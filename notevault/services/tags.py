"""
Tag lookup and usage accounting.

usage_count is moved with single UPDATE statements so concurrent requests
never overwrite each other's counts.
"""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.models.base import utcnow
from notevault.models.tag import Tag


def normalize_tag_names(names: Iterable[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping the given order."""
    seen: set[str] = set()
    result = []
    for name in names:
        name = name.strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


async def find_or_create_tags(db: AsyncSession, owner_id: int, names: Iterable[str]) -> list[Tag]:
    """Return the owner's tags with these names, creating the missing ones."""
    names = normalize_tag_names(names)
    if not names:
        return []

    result = await db.execute(
        select(Tag).where(Tag.owner_id == owner_id, Tag.name.in_(names))
    )
    existing = {tag.name: tag for tag in result.scalars().all()}

    tags = []
    for name in names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(owner_id=owner_id, name=name, usage_count=0)
            db.add(tag)
        tags.append(tag)

    await db.flush()
    return tags


async def increment_usage(db: AsyncSession, tag_ids: Iterable[int], now: datetime | None = None) -> None:
    tag_ids = list(tag_ids)
    if not tag_ids:
        return
    await db.execute(
        update(Tag)
        .where(Tag.id.in_(tag_ids))
        .values(usage_count=Tag.usage_count + 1, last_used_at=now or utcnow())
        .execution_options(synchronize_session="evaluate")
    )


async def decrement_usage(db: AsyncSession, tag_ids: Iterable[int]) -> None:
    tag_ids = list(tag_ids)
    if not tag_ids:
        return
    await db.execute(
        update(Tag)
        .where(Tag.id.in_(tag_ids), Tag.usage_count > 0)
        .values(usage_count=Tag.usage_count - 1)
        .execution_options(synchronize_session="evaluate")
    )


async def get_usage_counts(db: AsyncSession, tag_ids: Iterable[int]) -> dict[int, int]:
    """Read counters straight from the database."""
    tag_ids = list(tag_ids)
    if not tag_ids:
        return {}
    result = await db.execute(
        select(Tag.id, Tag.usage_count).where(Tag.id.in_(tag_ids))
    )
    return {tag_id: count for tag_id, count in result.all()}
