"""Create boards table

Revision ID: 20261017_0002
Revises: 20261017_0001
Create Date: 2026-10-17 00:02:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261017_0002'
down_revision: str | None = '20261017_0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create boards table."""
    op.create_table(
        'boards',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('background_color', sa.String(7), nullable=False, server_default='#ffffff'),
        sa.Column('is_public', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('share_token', sa.String(255), nullable=True, unique=True),
        sa.Column('view_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # Dashboard listing and share token lookups
    op.create_index('idx_boards_user_id', 'boards', ['user_id'])
    op.create_index('idx_boards_share_token', 'boards', ['share_token'])


def downgrade() -> None:
    """Drop boards table."""
    op.drop_index('idx_boards_share_token', table_name='boards')
    op.drop_index('idx_boards_user_id', table_name='boards')
    op.drop_table('boards')
