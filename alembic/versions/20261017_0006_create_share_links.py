"""Create share_links table

Revision ID: 20261017_0006
Revises: 20261017_0005
Create Date: 2026-10-17 00:06:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261017_0006'
down_revision: str | None = '20261017_0005'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create share_links table."""
    op.create_table(
        'share_links',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('token', sa.String(255), nullable=False, unique=True),
        sa.Column('board_id', UUID(as_uuid=True), sa.ForeignKey('boards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_index('idx_share_links_board_id', 'share_links', ['board_id'])


def downgrade() -> None:
    """Drop share_links table."""
    op.drop_index('idx_share_links_board_id', table_name='share_links')
    op.drop_table('share_links')
