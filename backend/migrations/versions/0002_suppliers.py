"""suppliers

Revision ID: 0002_suppliers
Revises: 0001_initial_store
Create Date: 2026-10-19 12:00:00.000000

Adds the supplier catalogue. Ingredients already carry supplier_id; the
supplier row keeps the reverse list used by the supplier screen.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_suppliers'
down_revision = '0001_initial_store'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'suppliers',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('associated_ingredients', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_suppliers_name', 'suppliers', ['name'])


def downgrade():
    op.drop_index('ix_suppliers_name', table_name='suppliers')
    op.drop_table('suppliers')
