"""add merchandise value and status update date

Revision ID: 8c4e2d9a6b31
Revises: 3a1f0c2b7d10
Create Date: 2025-04-15 16:43:26.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c4e2d9a6b31'
down_revision: Union[str, Sequence[str], None] = '3a1f0c2b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('orders', sa.Column('valor_mercadoria', sa.Numeric(precision=10, scale=2), nullable=True))
    op.add_column('orders', sa.Column('status_updated_at', sa.DateTime(), nullable=True))


def downgrade() -> None:
    op.drop_column('orders', 'status_updated_at')
    op.drop_column('orders', 'valor_mercadoria')
