"""initial shop schema

Revision ID: b7c1e2d3f4a5
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete schema:
- users: staff logins (bcrypt hashes)
- products: parts catalogue with stock counts and GST-inclusive prices
- invoices: completed sales with a JSON snapshot of their lines
- invoice_sequences: per-scope invoice number counters
- settings: single-row shop letterhead
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1e2d3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_username', 'users', ['username'])

    # ============================================================================
    # products: stock is never negative
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('hsn_code', sa.String(length=16), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('purchase_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('selling_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('gst_rate', sa.Integer(), nullable=False),
        sa.Column('max_discount', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_products_code'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_name', 'products', ['name'])

    # ============================================================================
    # invoices: written once at checkout, never updated
    # ============================================================================
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=32), nullable=True),
        sa.Column('items', sa.Text(), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('gst_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('grand_total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number', name='uq_invoices_invoice_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoices_created_at', 'invoices', ['created_at'])

    op.create_table(
        'invoice_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('scope', sa.String(length=16), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('scope', name='uq_invoice_sequences_scope'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # settings: only id=1 is used
    # ============================================================================
    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('gst_number', sa.String(length=32), nullable=True),
        sa.Column('footer_line1', sa.String(length=255), nullable=True),
        sa.Column('footer_line2', sa.String(length=255), nullable=True),
        sa.Column('footer_line3', sa.String(length=255), nullable=True),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('signature_url', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('settings')
    op.drop_table('invoice_sequences')
    op.drop_index('ix_invoices_created_at', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
