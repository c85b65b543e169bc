"""Database models for storesync"""

from storesync.models.base import Base, Database, get_database, init_db

from storesync.models.tenant import Tenant, TENANT_ACTIVE, TENANT_INACTIVE

from storesync.models.shopify import (
    Customer,
    Product,
    ProductVariant,
    Order,
    OrderLineItem,
    CustomEvent
)

from storesync.models.sync import (
    SyncCheckpoint,
    SyncLog,
    WebhookReceipt,
    SYNC_RUNNING,
    SYNC_COMPLETED,
    SYNC_FAILED
)
