"""
Shopify Data Models

Stores data pulled from the Shopify Admin API and pushed by webhooks.
Every row belongs to one tenant and is unique per (tenant_id, Shopify id).
"""
from sqlalchemy import (
    Column, Integer, String, DateTime, JSON, Text, BigInteger, ForeignKey,
    Numeric, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from storesync.models.base import Base
from storesync.utils.helpers import utcnow


class Customer(Base):
    """
    Shopify customers

    Synced from GET /admin/api/{version}/customers.json and customers/* webhooks
    """
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_customer_id", name="uq_customers_tenant_shopify_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    shopify_customer_id = Column(BigInteger, nullable=False)

    email = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    total_spent = Column(Numeric(10, 2), default=0)
    orders_count = Column(Integer, default=0)

    # Source timestamps
    shopify_created_at = Column(DateTime, nullable=True)
    shopify_updated_at = Column(DateTime, nullable=True, index=True)

    # Local bookkeeping
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)


class Product(Base):
    """
    Shopify products catalog

    Synced from GET /admin/api/{version}/products.json and products/* webhooks
    """
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_product_id", name="uq_products_tenant_shopify_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    shopify_product_id = Column(BigInteger, nullable=False)

    title = Column(String(500), nullable=True)
    body_html = Column(Text, nullable=True)
    vendor = Column(String(255), nullable=True)
    product_type = Column(String(255), nullable=True)
    handle = Column(String(255), nullable=True)
    tags = Column(Text, nullable=True)  # Comma separated, as Shopify sends it
    status = Column(String(50), nullable=True)  # active, archived, draft

    shopify_created_at = Column(DateTime, nullable=True)
    shopify_updated_at = Column(DateTime, nullable=True, index=True)
    shopify_published_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ProductVariant(Base):
    """Product variants, owned by a product"""
    __tablename__ = "product_variants"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_variant_id", name="uq_variants_tenant_shopify_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    shopify_variant_id = Column(BigInteger, nullable=False)

    title = Column(String(255), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    sku = Column(String(255), nullable=True)
    inventory_quantity = Column(Integer, default=0)
    weight = Column(Numeric(8, 2), nullable=True)

    shopify_created_at = Column(DateTime, nullable=True)
    shopify_updated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    product = relationship("Product", back_populates="variants")


class Order(Base):
    """
    Shopify orders

    Synced from GET /admin/api/{version}/orders.json?status=any and orders/* webhooks
    """
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_order_id", name="uq_orders_tenant_shopify_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)  # Local customer id

    shopify_order_id = Column(BigInteger, nullable=False)
    order_number = Column(String(50), nullable=True)

    total_price = Column(Numeric(10, 2), nullable=True)
    subtotal_price = Column(Numeric(10, 2), nullable=True)
    total_tax = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=True)

    financial_status = Column(String(50), nullable=True)
    fulfillment_status = Column(String(50), nullable=True)

    shipping_address = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)

    shopify_created_at = Column(DateTime, nullable=True, index=True)
    shopify_updated_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    line_items = relationship(
        "OrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class OrderLineItem(Base):
    """Order line items, owned by an order"""
    __tablename__ = "order_line_items"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_line_item_id", name="uq_line_items_tenant_shopify_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    # Resolved from Shopify ids at write time, null until the product is synced
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)

    shopify_line_item_id = Column(BigInteger, nullable=False)

    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=True)
    title = Column(String(500), nullable=True)
    variant_title = Column(String(255), nullable=True)
    sku = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    order = relationship("Order", back_populates="line_items")


class CustomEvent(Base):
    """
    Storefront events pushed by webhooks (cart abandoned, checkout started)

    Append-only; the raw webhook payload is kept for later analytics.
    """
    __tablename__ = "custom_events"
    __table_args__ = (
        Index("ix_custom_events_tenant_type", "tenant_id", "event_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)

    event_type = Column(String(100), nullable=False)  # cart_abandoned, checkout_started
    event_data = Column(JSON, nullable=True)
    session_id = Column(String(255), nullable=True)
    cart_token = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, index=True)
