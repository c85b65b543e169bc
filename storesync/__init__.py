"""storesync: multi-tenant Shopify ingestion and synchronization service"""

__version__ = "1.0.0"
