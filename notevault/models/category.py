"""
Category model: a per-user tree of folders for notes.
"""

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from notevault.db import Base
from notevault.models.base import TimestampMixin


class Category(Base, TimestampMixin):
    """A node in the owner's category tree.

    Children are found through ``parent_id``; the tree is walked in
    ``notevault.services.categories`` rather than through a relationship.
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_categories_owner_name"),
        Index("ix_categories_owner_parent", "owner_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#3B82F6")
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}', parent_id={self.parent_id})>"
