"""
Per-user category tree.

The tree is stored as an adjacency list (``parent_id``). Walks load the
owner's (id, parent_id) pairs once and traverse them iteratively with a
visited set, so a corrupted parent chain can never loop forever.
"""

import logging
from collections import deque

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.errors import ConflictError, NotFoundError
from notevault.models.category import Category
from notevault.models.note import Note
from notevault.models.user import User
from notevault.schemas import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "


async def _load_tree(db: AsyncSession, owner_id: int) -> dict[int, tuple[str, int | None]]:
    """Map of category id -> (name, parent_id) for one owner."""
    result = await db.execute(
        select(Category.id, Category.name, Category.parent_id)
        .where(Category.owner_id == owner_id)
        .order_by(Category.sort_order, Category.id)
    )
    return {row.id: (row.name, row.parent_id) for row in result.all()}


async def collect_descendant_ids(db: AsyncSession, category: Category) -> list[int]:
    """Ids of every category below this one, breadth first."""
    tree = await _load_tree(db, category.owner_id)
    children: dict[int, list[int]] = {}
    for cat_id, (_, parent_id) in tree.items():
        if parent_id is not None:
            children.setdefault(parent_id, []).append(cat_id)

    visited = {category.id}
    descendants = []
    queue = deque([category.id])
    while queue:
        current = queue.popleft()
        for child_id in children.get(current, []):
            if child_id in visited:
                continue
            visited.add(child_id)
            descendants.append(child_id)
            queue.append(child_id)
    return descendants


async def category_path(db: AsyncSession, category: Category) -> str:
    """Names from the root down to this category, e.g. "Work > Projects"."""
    tree = await _load_tree(db, category.owner_id)
    names = []
    visited = set()
    current = category.id
    while current is not None and current not in visited and current in tree:
        visited.add(current)
        name, parent_id = tree[current]
        names.append(name)
        current = parent_id
    return PATH_SEPARATOR.join(reversed(names))


async def list_categories(db: AsyncSession, user: User, parent_id: int | None = None, roots_only: bool = False) -> list[Category]:
    query = select(Category).where(Category.owner_id == user.id)
    if roots_only:
        query = query.where(Category.parent_id.is_(None))
    elif parent_id is not None:
        query = query.where(Category.parent_id == parent_id)
    query = query.order_by(Category.sort_order, Category.name)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_category(db: AsyncSession, user: User, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None or category.owner_id != user.id:
        raise NotFoundError("Category not found")
    return category


async def _ensure_unique_name(db: AsyncSession, owner_id: int, name: str, exclude_id: int | None = None) -> None:
    query = select(Category.id).where(Category.owner_id == owner_id, Category.name == name)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError("Category with this name already exists")


async def _get_parent(db: AsyncSession, user: User, parent_id: int) -> Category:
    parent = await db.get(Category, parent_id)
    if parent is None or parent.owner_id != user.id:
        raise NotFoundError("Parent category not found")
    return parent


async def create_category(db: AsyncSession, user: User, data: CategoryCreate) -> Category:
    await _ensure_unique_name(db, user.id, data.name)
    if data.parent_id is not None:
        await _get_parent(db, user, data.parent_id)

    category = Category(
        owner_id=user.id,
        parent_id=data.parent_id,
        name=data.name,
        description=data.description,
        color=data.color,
        sort_order=data.sort_order,
    )
    db.add(category)
    await db.flush()

    logger.info(f"Category {category.id} '{category.name}' created by user {user.id}")
    return category


async def update_category(db: AsyncSession, user: User, category: Category, data: CategoryUpdate) -> Category:
    """Rename, restyle or move a category.

    Moving a category under itself or one of its descendants is a Conflict.
    """
    fields = data.model_fields_set

    if data.name is not None and data.name != category.name:
        await _ensure_unique_name(db, user.id, data.name, exclude_id=category.id)
        category.name = data.name

    if "parent_id" in fields and data.parent_id != category.parent_id:
        if data.parent_id is not None:
            await _get_parent(db, user, data.parent_id)
            if data.parent_id == category.id:
                raise ConflictError("Category cannot be its own parent")
            if data.parent_id in await collect_descendant_ids(db, category):
                raise ConflictError("Cannot move category to its own descendant")
        category.parent_id = data.parent_id

    if data.description is not None:
        category.description = data.description
    if data.color is not None:
        category.color = data.color
    if data.sort_order is not None:
        category.sort_order = data.sort_order

    await db.flush()
    logger.info(f"Category {category.id} updated by user {user.id}")
    return category


async def delete_category(db: AsyncSession, user: User, category: Category, cascade: bool = False) -> int:
    """Delete a category, and with ``cascade`` its whole subtree.

    Notes filed in any removed category become uncategorized. Returns the
    number of notes moved.
    """
    descendant_ids = await collect_descendant_ids(db, category)
    if descendant_ids and not cascade:
        raise ConflictError(
            "Cannot delete category with subcategories. Delete or move them first, or pass cascade=true"
        )

    ids = [category.id, *descendant_ids]
    result = await db.execute(
        update(Note)
        .where(Note.author_id == user.id, Note.category_id.in_(ids))
        .values(category_id=None, updated_at=Note.updated_at)
        .execution_options(synchronize_session="evaluate")
    )
    moved = result.rowcount or 0

    # Children first so no row ever points at a parent that is already gone
    for category_id in reversed(ids):
        await db.execute(
            delete(Category)
            .where(Category.id == category_id, Category.owner_id == user.id)
            .execution_options(synchronize_session="evaluate")
        )

    logger.info(
        f"Category {category.id} deleted by user {user.id} "
        f"({len(descendant_ids)} subcategories, {moved} notes uncategorized)"
    )
    return moved
