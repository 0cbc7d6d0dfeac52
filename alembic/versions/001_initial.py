"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-16 00:00:00.000000

Users, categories, tags, notes (with share settings and version history)
and note collaborators.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('session_token', sa.String(64), unique=True, nullable=True, index=True),
        sa.Column('session_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Categories table (adjacency list tree)
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('owner_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', sa.Integer, sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=False, server_default=''),
        sa.Column('color', sa.String(7), nullable=False, server_default='#3B82F6'),
        sa.Column('sort_order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('owner_id', 'name', name='uq_categories_owner_name'),
    )
    op.create_index('ix_categories_owner_parent', 'categories', ['owner_id', 'parent_id'])

    # Tags table
    op.create_table(
        'tags',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('owner_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('color', sa.String(7), nullable=False, server_default='#6B7280'),
        sa.Column('usage_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('owner_id', 'name', name='uq_tags_owner_name'),
    )
    op.create_index('ix_tags_owner_usage', 'tags', ['owner_id', 'usage_count'])

    # Notes table
    op.create_table(
        'notes',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('author_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False, server_default='markdown'),
        sa.Column('excerpt', sa.String(300), nullable=False, server_default=''),
        sa.Column('word_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('reading_time', sa.Integer, nullable=False, server_default='0'),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('visibility', sa.String(20), nullable=False, server_default='private'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('is_pinned', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_favorite', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('previous_versions', sa.JSON, nullable=False, server_default='[]'),
        sa.Column('edit_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_shared', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('share_id', sa.String(64), unique=True, nullable=True),
        sa.Column('share_permission', sa.String(20), nullable=False, server_default='view'),
        sa.Column('share_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('allow_comments', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('view_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_notes_author_deleted', 'notes', ['author_id', 'is_deleted'])
    op.create_index('ix_notes_category_id', 'notes', ['category_id'])

    # Note <-> tag association
    op.create_table(
        'note_tags',
        sa.Column('note_id', sa.Integer, sa.ForeignKey('notes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Integer, sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )

    # Collaborators
    op.create_table(
        'note_collaborators',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('note_id', sa.Integer, sa.ForeignKey('notes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission', sa.String(20), nullable=False, server_default='view'),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('note_id', 'user_id', name='uq_note_collaborator_user'),
    )
    op.create_index('ix_note_collaborators_user_id', 'note_collaborators', ['user_id'])


def downgrade() -> None:
    op.drop_table('note_collaborators')
    op.drop_table('note_tags')
    op.drop_table('notes')
    op.drop_table('tags')
    op.drop_table('categories')
    op.drop_table('users')
