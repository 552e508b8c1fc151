"""Create catalog tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create collections, categories, subcollections, subcategories and products."""
    op.create_table(
        'collections',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('external_id', sa.Integer(), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False, index=True),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('slug', sa.String(200), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('collection_id', sa.Integer(), nullable=False, index=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
    )

    op.create_table(
        'subcollections',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('external_id', sa.Integer(), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('category_slug', sa.String(200), nullable=False, index=True),
    )

    op.create_table(
        'subcategories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('slug', sa.String(200), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('subcollection_id', sa.Integer(), nullable=False, index=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('slug', sa.String(300), nullable=False, index=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('subcategory_slug', sa.String(200), nullable=False, index=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
    )

    # Keyset pagination over a subcategory's products
    op.create_index(
        'ix_products_subcategory_slug_slug_id',
        'products',
        ['subcategory_slug', 'slug', 'id'],
    )

    # Full-text search over product names
    op.execute(
        "CREATE INDEX ix_products_name_fts ON products "
        "USING gin (to_tsvector('english', name))"
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.execute("DROP INDEX IF EXISTS ix_products_name_fts")
    op.drop_index('ix_products_subcategory_slug_slug_id', table_name='products')
    op.drop_table('products')
    op.drop_table('subcategories')
    op.drop_table('subcollections')
    op.drop_table('categories')
    op.drop_table('collections')
