"""initial store schema

Revision ID: 0001_initial_store
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the persistence mirror of the in-memory POS state:
- ingredients, products: catalogue, upserted by id
- shifts: cash-drawer sessions, upserted while open
- sales, tax_entries, waste_entries, purchase_orders: insert-only history

All primary keys are client-generated strings. Amounts are integer cents;
stock quantities are floats.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_store'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # ingredients
    # ============================================================================
    op.create_table(
        'ingredients',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('stock', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=False),
        sa.Column('min_stock', sa.Float(), nullable=False),
        sa.Column('cost_per_unit_cents', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ingredients_name', 'ingredients', ['name'])

    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('recipe', sa.JSON(), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_category_name', 'products', ['category', 'name'])

    # ============================================================================
    # shifts
    # ============================================================================
    op.create_table(
        'shifts',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('initial_base_cents', sa.Integer(), nullable=False),
        sa.Column('final_cash_cents', sa.Integer(), nullable=True),
        sa.Column('expected_cash_cents', sa.Integer(), nullable=True),
        sa.Column('discrepancy_cents', sa.Integer(), nullable=True),
        sa.Column('total_sales_cents', sa.Integer(), nullable=False),
        sa.Column('total_card_cents', sa.Integer(), nullable=False),
        sa.Column('total_cash_sales_cents', sa.Integer(), nullable=False),
        sa.Column('total_expenses_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('discrepancy_events', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shifts_start_time', 'shifts', ['start_time'])
    op.create_index('ix_shifts_status', 'shifts', ['status'])

    # ============================================================================
    # sales (references shifts)
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('amount_paid_cents', sa.Integer(), nullable=False),
        sa.Column('change_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('payment_method_detail', sa.String(length=128), nullable=True),
        sa.Column('seller_id', sa.String(length=64), nullable=False),
        sa.Column('table_id', sa.String(length=64), nullable=True),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('shift_id', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['shift_id'], ['shifts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_timestamp', 'sales', ['timestamp'])
    op.create_index('ix_sales_payment_method', 'sales', ['payment_method'])
    op.create_index('ix_sales_shift_id', 'sales', ['shift_id'])
    op.create_index('ix_sales_tenant_timestamp', 'sales', ['tenant_id', 'timestamp'])

    # ============================================================================
    # tax_entries
    # ============================================================================
    op.create_table(
        'tax_entries',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('concept', sa.String(length=255), nullable=False),
        sa.Column('base_cents', sa.Integer(), nullable=False),
        sa.Column('tax_rate', sa.Float(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('manual', sa.Boolean(), nullable=False),
        sa.Column('is_cash_out', sa.Boolean(), nullable=False),
        sa.Column('attachment_url', sa.String(length=512), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tax_entries_date', 'tax_entries', ['date'])
    op.create_index('ix_tax_entries_type', 'tax_entries', ['type'])

    # ============================================================================
    # waste_entries
    # ============================================================================
    op.create_table(
        'waste_entries',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_waste_entries_timestamp', 'waste_entries', ['timestamp'])
    op.create_index('ix_waste_entries_product_id', 'waste_entries', ['product_id'])

    # ============================================================================
    # purchase_orders
    # ============================================================================
    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('supplier_name', sa.String(length=255), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_purchase_orders_status', 'purchase_orders', ['status'])
    op.create_index('ix_purchase_orders_date', 'purchase_orders', ['date'])


def downgrade():
    op.drop_table('purchase_orders')
    op.drop_table('waste_entries')
    op.drop_table('tax_entries')
    op.drop_table('sales')
    op.drop_table('shifts')
    op.drop_table('products')
    op.drop_table('ingredients')
