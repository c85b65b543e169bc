"""
Shopify Connector

Reads customers, products and orders from the Shopify Admin REST API,
one page at a time, using since_id cursor pagination.
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from storesync.connectors.base import BaseConnector
from storesync.exceptions import SourceError, SourceRateLimitError, SourceResponseError, UnsupportedEntityError
from storesync.schemas.shopify import ENTITY_ORDERS, ENTITY_TYPES
from storesync.utils.logger import log


class ShopifyConnector(BaseConnector):
    """
    Connector for the Shopify Admin API

    The access token and shop domain are passed on every call, so one
    instance serves all tenants. Only request pacing is kept per store.
    """

    def __init__(
        self,
        api_version: str = "2024-01",
        timeout: float = 60.0,
        requests_per_second: Optional[float] = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Shopify connector

        Args:
            api_version: Admin API version in the request path
            timeout: Per-request timeout in seconds
            requests_per_second: Client-side pacing (None disables it)
            transport: Optional httpx transport, used by tests
        """
        super().__init__(source_name="shopify")

        self.api_version = api_version
        self.timeout = timeout
        self.transport = transport

        # Rate limiting (Shopify REST: 2 req/sec per store), keyed by shop domain
        self.requests_per_second = requests_per_second
        self.next_request_times: Dict[str, float] = {}

    def _get_headers(self, access_token: str) -> Dict[str, str]:
        """Get HTTP headers for Shopify API requests"""
        return {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json"
        }

    def _build_url(self, shop_domain: str, entity_type: str) -> str:
        return f"https://{shop_domain}/admin/api/{self.api_version}/{entity_type}.json"

    def _build_params(
        self,
        entity_type: str,
        page_size: int,
        since_id: Optional[int],
        updated_since: Optional[datetime],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": page_size}

        if entity_type == ENTITY_ORDERS:
            params["status"] = "any"  # open, closed and cancelled

        if since_id is not None:
            params["since_id"] = since_id

        if updated_since is not None:
            if updated_since.tzinfo is None:
                updated_since = updated_since.replace(tzinfo=timezone.utc)
            params["updated_at_min"] = updated_since.isoformat()

        return params

    async def fetch_page(
        self,
        access_token: str,
        shop_domain: str,
        entity_type: str,
        page_size: int,
        since_id: Optional[int] = None,
        updated_since: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        if entity_type not in ENTITY_TYPES:
            raise UnsupportedEntityError(entity_type)

        url = self._build_url(shop_domain, entity_type)
        params = self._build_params(entity_type, page_size, since_id, updated_since)

        await self._rate_limit(shop_domain)

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=self._get_headers(access_token))
        except httpx.HTTPError as e:
            log.error(f"Error fetching {entity_type} from {shop_domain}: {str(e)}")
            raise SourceError(f"Request to {shop_domain} failed: {str(e)}") from e

        if response.status_code == 429:
            retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
            log.warning(f"Shopify rate limit hit for {shop_domain} (retry after {retry_after}s)")
            raise SourceRateLimitError(f"Rate limited by {shop_domain}", retry_after=retry_after)

        if response.status_code != 200:
            log.error(f"Error fetching {entity_type}: {response.status_code} - {response.text[:500]}")
            raise SourceResponseError(
                f"Shopify returned {response.status_code} for {entity_type}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceResponseError(f"Shopify returned a non-JSON body for {entity_type}", 200) from e

        records = data.get(entity_type) if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise SourceResponseError(f"Shopify response is missing the '{entity_type}' collection", 200)

        log.debug(f"Fetched {len(records)} {entity_type} from {shop_domain} (since_id={since_id})")
        return records

    @staticmethod
    def _parse_retry_after(value: Optional[str]) -> Optional[float]:
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            return None

    def _reserve_slot(self, shop_domain: str) -> float:
        """
        Claim the next request slot for a store and return the wait before it

        Slots are tracked per shop domain. The claim happens without awaiting,
        so interleaved tasks for the same store each get a distinct slot.
        """
        now = time.monotonic()
        min_interval = 1.0 / self.requests_per_second
        previous = self.next_request_times.get(shop_domain)

        slot = now if previous is None else max(now, previous + min_interval)
        self.next_request_times[shop_domain] = slot
        return slot - now

    async def _rate_limit(self, shop_domain: str):
        """Enforce client-side pacing between requests to the same store"""
        if not self.requests_per_second:
            return

        delay = self._reserve_slot(shop_domain)
        if delay > 0:
            await asyncio.sleep(delay)
