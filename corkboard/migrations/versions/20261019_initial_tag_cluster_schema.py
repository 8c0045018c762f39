"""Initial tag and cluster schema

Revision ID: 3c1f0a7d92e4
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a7d92e4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create content tables plus the tag and cluster association tables.

    Tag names are unique per owner ignoring case through a functional
    index on lower(name).
    """
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
    )
    op.create_index('ix_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'feeds',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column(
            'category_id',
            sa.Integer(),
            sa.ForeignKey('categories.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('site_url', sa.Text(), nullable=False),
        sa.Column('icon_id', sa.Integer(), nullable=True),
    )
    op.create_index('ix_feeds_user_id', 'feeds', ['user_id'])

    op.create_table(
        'entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column(
            'feed_id',
            sa.Integer(),
            sa.ForeignKey('feeds.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('author', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_entries_user_id', 'entries', ['user_id'])
    op.create_index('ix_entries_user_published', 'entries', ['user_id', 'published_at'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("name != ''", name='ck_tag_non_empty_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_tags_owner_id', 'tags', ['owner_id'])
    op.create_index(
        'uq_tags_owner_lower_name',
        'tags',
        ['owner_id', sa.text('lower(name)')],
        unique=True,
    )

    op.create_table(
        'entry_tags',
        sa.Column(
            'entry_id',
            sa.Integer(),
            sa.ForeignKey('entries.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'tag_id',
            sa.Integer(),
            sa.ForeignKey('tags.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('source', sa.String(length=16), nullable=False, server_default='manual'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "source IN ('manual', 'auto')", name='ck_entry_tag_valid_source'
        ),
    )
    op.create_index('ix_entry_tags_tag_id', 'entry_tags', ['tag_id'])

    op.create_table(
        'clusters',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("name != ''", name='ck_cluster_non_empty_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_clusters_owner_id', 'clusters', ['owner_id'])
    op.create_index('ix_clusters_expires_at', 'clusters', ['expires_at'])

    op.create_table(
        'cluster_entries',
        sa.Column(
            'cluster_id',
            sa.Integer(),
            sa.ForeignKey('clusters.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'entry_id',
            sa.Integer(),
            sa.ForeignKey('entries.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )
    op.create_index('ix_cluster_entries_entry_id', 'cluster_entries', ['entry_id'])


def downgrade() -> None:
    """Drop every engine table, children first."""
    op.drop_table('cluster_entries')
    op.drop_table('clusters')
    op.drop_table('entry_tags')
    op.drop_index('uq_tags_owner_lower_name', table_name='tags')
    op.drop_table('tags')
    op.drop_table('entries')
    op.drop_table('feeds')
    op.drop_table('categories')
