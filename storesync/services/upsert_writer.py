"""
Upsert Writer

Maps validated Shopify records onto local rows. Every write is an
INSERT ... ON CONFLICT (tenant_id, <shopify id>) DO UPDATE, so re-delivering
the same record any number of times leaves exactly one row. Mutable fields
are overwritten from the incoming record; tenant_id, the Shopify id and the
local created_at are never touched by an update.

All methods take the caller's session and never commit: a page or a webhook
event is written in the caller's single transaction.
"""
from typing import Any, Dict, Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from storesync.exceptions import UnsupportedEntityError
from storesync.models.shopify import Customer, Product, ProductVariant, Order, OrderLineItem
from storesync.schemas.shopify import (
    ENTITY_CUSTOMERS,
    ENTITY_PRODUCTS,
    ENTITY_ORDERS,
    CustomerRecord,
    LineItemRecord,
    OrderRecord,
    ProductRecord,
    ShopifyRecord,
    VariantRecord,
)
from storesync.utils.helpers import utcnow
from storesync.utils.logger import log

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Never overwritten on conflict
_IMMUTABLE_COLUMNS = {"id", "tenant_id", "created_at"}


def dialect_insert(session: Session):
    dialect = session.get_bind().dialect.name
    try:
        return _INSERT_BY_DIALECT[dialect]
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on the {dialect} dialect")


class UpsertWriter:
    """Idempotent writer for customers, products (+variants) and orders (+line items)"""

    def upsert(
        self,
        session: Session,
        model,
        conflict_columns: Sequence[str],
        values: Dict[str, Any],
    ) -> int:
        """
        Insert or update one row keyed by conflict_columns and return its local id
        """
        now = utcnow()
        values = dict(values, created_at=now, updated_at=now)
        update_columns = [
            col for col in values
            if col not in _IMMUTABLE_COLUMNS and col not in conflict_columns
        ]

        insert = dialect_insert(session)
        stmt = insert(model.__table__).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={col: getattr(stmt.excluded, col) for col in update_columns},
        )
        session.execute(stmt)

        key = select(model.id)
        for col in conflict_columns:
            key = key.where(getattr(model, col) == values[col])
        return session.execute(key).scalar_one()

    def _lookup_id(self, session: Session, model, tenant_id: int, column: str, external_id: Optional[int]) -> Optional[int]:
        if external_id is None:
            return None
        return session.execute(
            select(model.id).where(model.tenant_id == tenant_id, getattr(model, column) == external_id)
        ).scalar_one_or_none()

    def resolve_customer_id(self, session: Session, tenant_id: int, external_id: Optional[int]) -> Optional[int]:
        """Local id of an already-synced customer, or None. Never creates a customer."""
        return self._lookup_id(session, Customer, tenant_id, "shopify_customer_id", external_id)

    def resolve_product_id(self, session: Session, tenant_id: int, external_id: Optional[int]) -> Optional[int]:
        return self._lookup_id(session, Product, tenant_id, "shopify_product_id", external_id)

    def resolve_variant_id(self, session: Session, tenant_id: int, external_id: Optional[int]) -> Optional[int]:
        return self._lookup_id(session, ProductVariant, tenant_id, "shopify_variant_id", external_id)

    def upsert_customer(self, session: Session, tenant_id: int, record: CustomerRecord) -> int:
        return self.upsert(session, Customer, ("tenant_id", "shopify_customer_id"), {
            "tenant_id": tenant_id,
            "shopify_customer_id": record.id,
            "email": record.email,
            "first_name": record.first_name,
            "last_name": record.last_name,
            "phone": record.phone,
            "total_spent": record.total_spent,
            "orders_count": record.orders_count,
            "shopify_created_at": record.created_at,
            "shopify_updated_at": record.updated_at,
        })

    def upsert_product(self, session: Session, tenant_id: int, record: ProductRecord) -> int:
        product_id = self.upsert(session, Product, ("tenant_id", "shopify_product_id"), {
            "tenant_id": tenant_id,
            "shopify_product_id": record.id,
            "title": record.title,
            "body_html": record.body_html,
            "vendor": record.vendor,
            "product_type": record.product_type,
            "handle": record.handle,
            "tags": record.tags,
            "status": record.status,
            "shopify_created_at": record.created_at,
            "shopify_updated_at": record.updated_at,
            "shopify_published_at": record.published_at,
        })

        for variant in record.variants:
            self.upsert_variant(session, tenant_id, product_id, variant)

        return product_id

    def upsert_variant(self, session: Session, tenant_id: int, product_id: int, record: VariantRecord) -> int:
        return self.upsert(session, ProductVariant, ("tenant_id", "shopify_variant_id"), {
            "tenant_id": tenant_id,
            "product_id": product_id,
            "shopify_variant_id": record.id,
            "title": record.title,
            "price": record.price,
            "sku": record.sku,
            "inventory_quantity": record.inventory_quantity,
            "weight": record.weight,
            "shopify_created_at": record.created_at,
            "shopify_updated_at": record.updated_at,
        })

    def upsert_order(self, session: Session, tenant_id: int, record: OrderRecord) -> int:
        customer_external_id = record.customer.id if record.customer else None
        customer_id = self.resolve_customer_id(session, tenant_id, customer_external_id)

        if customer_external_id is not None and customer_id is None:
            log.debug(f"Order {record.id}: customer {customer_external_id} not synced yet, leaving unlinked")

        order_id = self.upsert(session, Order, ("tenant_id", "shopify_order_id"), {
            "tenant_id": tenant_id,
            "customer_id": customer_id,
            "shopify_order_id": record.id,
            "order_number": record.order_number,
            "total_price": record.total_price,
            "subtotal_price": record.subtotal_price,
            "total_tax": record.total_tax,
            "currency": record.currency,
            "financial_status": record.financial_status,
            "fulfillment_status": record.fulfillment_status,
            "shipping_address": record.shipping_address,
            "billing_address": record.billing_address,
            "shopify_created_at": record.created_at,
            "shopify_updated_at": record.updated_at,
        })

        for line_item in record.line_items:
            self.upsert_line_item(session, tenant_id, order_id, line_item)

        return order_id

    def upsert_line_item(self, session: Session, tenant_id: int, order_id: int, record: LineItemRecord) -> int:
        return self.upsert(session, OrderLineItem, ("tenant_id", "shopify_line_item_id"), {
            "tenant_id": tenant_id,
            "order_id": order_id,
            "product_id": self.resolve_product_id(session, tenant_id, record.product_id),
            "variant_id": self.resolve_variant_id(session, tenant_id, record.variant_id),
            "shopify_line_item_id": record.id,
            "quantity": record.quantity,
            "price": record.price,
            "title": record.title,
            "variant_title": record.variant_title,
            "sku": record.sku,
        })

    def write_record(self, session: Session, tenant_id: int, entity_type: str, record: ShopifyRecord) -> int:
        if entity_type == ENTITY_CUSTOMERS:
            return self.upsert_customer(session, tenant_id, record)
        if entity_type == ENTITY_PRODUCTS:
            return self.upsert_product(session, tenant_id, record)
        if entity_type == ENTITY_ORDERS:
            return self.upsert_order(session, tenant_id, record)
        raise UnsupportedEntityError(entity_type)

    def write_page(
        self,
        session: Session,
        tenant_id: int,
        entity_type: str,
        records: Iterable[ShopifyRecord],
    ) -> int:
        """
        Upsert every record of a page in the caller's transaction

        Returns:
            Number of records written
        """
        written = 0
        for record in records:
            self.write_record(session, tenant_id, entity_type, record)
            written += 1
        return written
