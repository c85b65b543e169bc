"""initial_ingestion_schema

Revision ID: a3f1c2d4e5b6
Revises:
Create Date: 2026-10-19

Tenants, synced Shopify data, custom events and sync bookkeeping.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a3f1c2d4e5b6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _tenant_fk() -> sa.Column:
    return sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)


def upgrade() -> None:
    """Create all ingestion tables."""
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('shop_domain', sa.String(255), nullable=False, unique=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('shopify_shop_id', sa.BigInteger(), nullable=True),
        sa.Column('plan', sa.String(50)),
        sa.Column('status', sa.String(20), index=True),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('shopify_customer_id', sa.BigInteger(), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('first_name', sa.String(255)),
        sa.Column('last_name', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('total_spent', sa.Numeric(10, 2)),
        sa.Column('orders_count', sa.Integer()),
        sa.Column('shopify_created_at', sa.DateTime()),
        sa.Column('shopify_updated_at', sa.DateTime(), index=True),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('tenant_id', 'shopify_customer_id', name='uq_customers_tenant_shopify_id'),
    )
    op.create_index('ix_customers_tenant_id', 'customers', ['tenant_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('shopify_product_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(500)),
        sa.Column('body_html', sa.Text()),
        sa.Column('vendor', sa.String(255)),
        sa.Column('product_type', sa.String(255)),
        sa.Column('handle', sa.String(255)),
        sa.Column('tags', sa.Text()),
        sa.Column('status', sa.String(50)),
        sa.Column('shopify_created_at', sa.DateTime()),
        sa.Column('shopify_updated_at', sa.DateTime(), index=True),
        sa.Column('shopify_published_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('tenant_id', 'shopify_product_id', name='uq_products_tenant_shopify_id'),
    )
    op.create_index('ix_products_tenant_id', 'products', ['tenant_id'])

    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('shopify_variant_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(255)),
        sa.Column('price', sa.Numeric(10, 2)),
        sa.Column('sku', sa.String(255)),
        sa.Column('inventory_quantity', sa.Integer()),
        sa.Column('weight', sa.Numeric(8, 2)),
        sa.Column('shopify_created_at', sa.DateTime()),
        sa.Column('shopify_updated_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('tenant_id', 'shopify_variant_id', name='uq_variants_tenant_shopify_id'),
    )

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('shopify_order_id', sa.BigInteger(), nullable=False),
        sa.Column('order_number', sa.String(50)),
        sa.Column('total_price', sa.Numeric(10, 2)),
        sa.Column('subtotal_price', sa.Numeric(10, 2)),
        sa.Column('total_tax', sa.Numeric(10, 2)),
        sa.Column('currency', sa.String(3)),
        sa.Column('financial_status', sa.String(50)),
        sa.Column('fulfillment_status', sa.String(50)),
        sa.Column('shipping_address', sa.JSON()),
        sa.Column('billing_address', sa.JSON()),
        sa.Column('shopify_created_at', sa.DateTime(), index=True),
        sa.Column('shopify_updated_at', sa.DateTime(), index=True),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('tenant_id', 'shopify_order_id', name='uq_orders_tenant_shopify_id'),
    )
    op.create_index('ix_orders_tenant_id', 'orders', ['tenant_id'])

    op.create_table(
        'order_line_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='SET NULL'), nullable=True),
        sa.Column('variant_id', sa.Integer(), sa.ForeignKey('product_variants.id', ondelete='SET NULL'), nullable=True),
        sa.Column('shopify_line_item_id', sa.BigInteger(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2)),
        sa.Column('title', sa.String(500)),
        sa.Column('variant_title', sa.String(255)),
        sa.Column('sku', sa.String(255)),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('tenant_id', 'shopify_line_item_id', name='uq_line_items_tenant_shopify_id'),
    )

    op.create_table(
        'custom_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('event_data', sa.JSON()),
        sa.Column('session_id', sa.String(255)),
        sa.Column('cart_token', sa.String(255), index=True),
        sa.Column('created_at', sa.DateTime(), index=True),
    )
    op.create_index('ix_custom_events_tenant_type', 'custom_events', ['tenant_id', 'event_type'])

    op.create_table(
        'sync_checkpoints',
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('entity', sa.String(50), primary_key=True),
        sa.Column('last_updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_run_at', sa.DateTime()),
    )

    op.create_table(
        'sync_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('sync_type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('records_processed', sa.Integer()),
        sa.Column('error_message', sa.Text()),
        sa.Column('started_at', sa.DateTime()),
        sa.Column('completed_at', sa.DateTime()),
    )
    op.create_index('ix_sync_logs_tenant_started', 'sync_logs', ['tenant_id', 'started_at'])

    op.create_table(
        'webhook_receipts',
        sa.Column('id', sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column('topic', sa.String(150), nullable=False),
        sa.Column('external_id', sa.String(255), nullable=False),
        sa.Column('received_at', sa.DateTime()),
        sa.UniqueConstraint('tenant_id', 'topic', 'external_id', name='uq_webhook_receipts_event'),
    )
    op.create_index('ix_webhook_receipts_tenant_topic', 'webhook_receipts', ['tenant_id', 'topic'])


def downgrade() -> None:
    """Drop all ingestion tables."""
    op.drop_index('ix_webhook_receipts_tenant_topic', table_name='webhook_receipts')
    op.drop_table('webhook_receipts')
    op.drop_index('ix_sync_logs_tenant_started', table_name='sync_logs')
    op.drop_table('sync_logs')
    op.drop_table('sync_checkpoints')
    op.drop_index('ix_custom_events_tenant_type', table_name='custom_events')
    op.drop_table('custom_events')
    op.drop_table('order_line_items')
    op.drop_index('ix_orders_tenant_id', table_name='orders')
    op.drop_table('orders')
    op.drop_table('product_variants')
    op.drop_index('ix_products_tenant_id', table_name='products')
    op.drop_table('products')
    op.drop_index('ix_customers_tenant_id', table_name='customers')
    op.drop_table('customers')
    op.drop_table('tenants')
