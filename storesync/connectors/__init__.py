"""Source connectors"""

from storesync.connectors.base import BaseConnector
from storesync.connectors.shopify import ShopifyConnector

__all__ = [
    "BaseConnector",
    "ShopifyConnector"
]
