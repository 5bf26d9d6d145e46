"""Create liked_boards table

Revision ID: 20261017_0005
Revises: 20261017_0004
Create Date: 2026-10-17 00:05:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261017_0005'
down_revision: str | None = '20261017_0004'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create liked_boards table."""
    op.create_table(
        'liked_boards',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('board_id', UUID(as_uuid=True), sa.ForeignKey('boards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'board_id', name='liked_boards_user_board_key'),
    )

    # Likes are looked up from both sides
    op.create_index('idx_liked_boards_user_id', 'liked_boards', ['user_id'])
    op.create_index('idx_liked_boards_board_id', 'liked_boards', ['board_id'])


def downgrade() -> None:
    """Drop liked_boards table."""
    op.drop_index('idx_liked_boards_board_id', table_name='liked_boards')
    op.drop_index('idx_liked_boards_user_id', table_name='liked_boards')
    op.drop_table('liked_boards')
