"""Create advisories table.

Revision ID: 001_advisories
Revises:
Create Date: 2026-10-16

One row per normalized city key; weather and country snapshots are JSON
documents replaced whole on every sync.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_advisories'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'advisories',
        sa.Column('city_key', sa.String(100), primary_key=True),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('weather', sa.JSON(), nullable=False),
        sa.Column('country', sa.JSON(), nullable=False),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index('ix_advisories_created_at', 'advisories', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_advisories_created_at', table_name='advisories')
    op.drop_table('advisories')
