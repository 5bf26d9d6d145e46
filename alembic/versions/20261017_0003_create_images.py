"""Create images table

Revision ID: 20261017_0003
Revises: 20261017_0002
Create Date: 2026-10-17 00:03:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261017_0003'
down_revision: str | None = '20261017_0002'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create images table."""
    op.create_table(
        'images',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('url', sa.Text, nullable=False),
        sa.Column('public_id', sa.String(255), nullable=True),
        sa.Column('position_x', sa.Integer, nullable=False, server_default='0'),
        sa.Column('position_y', sa.Integer, nullable=False, server_default='0'),
        sa.Column('width', sa.Integer, nullable=False),
        sa.Column('height', sa.Integer, nullable=False),
        sa.Column('rotation', sa.Integer, nullable=False, server_default='0'),
        sa.Column('z_index', sa.Integer, nullable=False, server_default='0'),
        sa.Column('board_id', UUID(as_uuid=True), sa.ForeignKey('boards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('idx_images_board_id', 'images', ['board_id'])


def downgrade() -> None:
    """Drop images table."""
    op.drop_index('idx_images_board_id', table_name='images')
    op.drop_table('images')
