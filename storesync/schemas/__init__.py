"""Payload schemas"""

from storesync.schemas.shopify import (
    ENTITY_CUSTOMERS,
    ENTITY_PRODUCTS,
    ENTITY_ORDERS,
    ENTITY_TYPES,
    CustomerRecord,
    ProductRecord,
    VariantRecord,
    OrderRecord,
    LineItemRecord,
    EmbeddedCustomer,
    parse_record,
    parse_records,
)
