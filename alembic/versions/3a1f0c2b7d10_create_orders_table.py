"""create orders tracking table

Revision ID: 3a1f0c2b7d10
Revises:
Create Date: 2025-04-15 15:53:16.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a1f0c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('referencia', sa.Text(), nullable=False),
        sa.Column('ultima_ocorrencia', sa.Text(), nullable=False),
        sa.Column('data_ultima_ocorrencia', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Text(), server_default=sa.text("'Pendentes'"), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_referencia', 'orders', ['referencia'], unique=False)
    op.create_index('ix_orders_created_at', 'orders', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_index('ix_orders_referencia', table_name='orders')
    op.drop_table('orders')
