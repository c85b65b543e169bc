"""
Base Connector Class

The ingestion orchestrator talks to the external store API only through
this interface, so tests and alternative sources can supply their own pages.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional


class BaseConnector(ABC):
    """
    Paged read access to one external source

    Implementations fetch a single page per call; the orchestrator owns the
    loop, the cursor and the stop conditions.
    """

    def __init__(self, source_name: str):
        self.source_name = source_name

    @abstractmethod
    async def fetch_page(
        self,
        access_token: str,
        shop_domain: str,
        entity_type: str,
        page_size: int,
        since_id: Optional[int] = None,
        updated_since: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw records

        Args:
            access_token: Tenant credential for the source
            shop_domain: Tenant's store host
            entity_type: customers, products or orders
            page_size: Maximum records to return
            since_id: Only records with an external id greater than this
            updated_since: Only records updated at or after this time (naive UTC)

        Returns:
            Raw records in ascending external id order (possibly empty)

        Raises:
            SourceError: Network failure or unusable response
        """
        pass
