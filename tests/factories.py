"""
Payload builders and a scripted source connector for tests
"""
from typing import Any, Dict, List, Optional

from storesync.connectors.base import BaseConnector


def customer_payload(customer_id: int, updated_at: str = "2024-01-01T10:00:00Z", **overrides) -> Dict[str, Any]:
    payload = {
        "id": customer_id,
        "email": f"customer{customer_id}@example.com",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "phone": None,
        "total_spent": "120.50",
        "orders_count": 2,
        "created_at": "2023-12-01T09:00:00Z",
        "updated_at": updated_at,
    }
    payload.update(overrides)
    return payload


def product_payload(product_id: int, variant_ids=(), updated_at: str = "2024-01-01T10:00:00Z", **overrides) -> Dict[str, Any]:
    payload = {
        "id": product_id,
        "title": f"Product {product_id}",
        "body_html": "<p>Nice</p>",
        "vendor": "Acme",
        "product_type": "Widget",
        "handle": f"product-{product_id}",
        "tags": "sale, new",
        "status": "active",
        "created_at": "2023-12-01T09:00:00Z",
        "updated_at": updated_at,
        "published_at": "2023-12-02T09:00:00Z",
        "variants": [
            {
                "id": variant_id,
                "title": "Default",
                "price": "19.99",
                "sku": f"SKU-{variant_id}",
                "inventory_quantity": 5,
                "weight": 1.5,
                "created_at": "2023-12-01T09:00:00Z",
                "updated_at": updated_at,
            }
            for variant_id in variant_ids
        ],
    }
    payload.update(overrides)
    return payload


def order_payload(
    order_id: int,
    customer_id: Optional[int] = None,
    updated_at: str = "2024-01-01T10:00:00Z",
    line_items: Optional[List[Dict[str, Any]]] = None,
    **overrides
) -> Dict[str, Any]:
    payload = {
        "id": order_id,
        "order_number": 1000 + order_id,
        "total_price": "59.97",
        "subtotal_price": "54.97",
        "total_tax": "5.00",
        "currency": "USD",
        "financial_status": "paid",
        "fulfillment_status": None,
        "shipping_address": {"city": "Springfield"},
        "billing_address": None,
        "created_at": "2023-12-31T09:00:00Z",
        "updated_at": updated_at,
        "line_items": line_items or [],
    }
    if customer_id is not None:
        payload["customer"] = {"id": customer_id, "email": "someone@example.com"}
    payload.update(overrides)
    return payload


class FakeConnector(BaseConnector):
    """
    Serves scripted pages per entity type and records every call

    A page may be an Exception instance, which is raised instead of returned.
    Once the script runs out, empty pages are returned.
    """

    def __init__(self, pages: Optional[Dict[str, List[Any]]] = None):
        super().__init__(source_name="fake")
        self.pages = {entity: list(entity_pages) for entity, entity_pages in (pages or {}).items()}
        self.calls: List[Dict[str, Any]] = []

    def script(self, entity_type: str, *pages):
        self.pages[entity_type] = list(pages)

    async def fetch_page(self, access_token, shop_domain, entity_type, page_size, since_id=None, updated_since=None):
        self.calls.append({
            "access_token": access_token,
            "shop_domain": shop_domain,
            "entity_type": entity_type,
            "page_size": page_size,
            "since_id": since_id,
            "updated_since": updated_since,
        })
        remaining = self.pages.get(entity_type) or []
        if not remaining:
            return []
        page = remaining.pop(0)
        if isinstance(page, Exception):
            raise page
        return page

    def calls_for(self, entity_type: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["entity_type"] == entity_type]
