"""Create tags table

Revision ID: 20261017_0004
Revises: 20261017_0003
Create Date: 2026-10-17 00:04:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261017_0004'
down_revision: str | None = '20261017_0003'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create tags table."""
    op.create_table(
        'tags',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('board_id', UUID(as_uuid=True), sa.ForeignKey('boards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('board_id', 'name', name='tags_board_name_key'),
    )

    op.create_index('idx_tags_board_id', 'tags', ['board_id'])


def downgrade() -> None:
    """Drop tags table."""
    op.drop_index('idx_tags_board_id', table_name='tags')
    op.drop_table('tags')
