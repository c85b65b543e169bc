#!/usr/bin/env python3
"""
Manual sync from the command line

Runs the same ingestion the API and the scheduler run:
- One tenant:  python scripts/sync_tenants.py --tenant 3 --types orders
- All tenants: python scripts/sync_tenants.py
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from storesync.config import get_settings
from storesync.connectors.shopify import ShopifyConnector
from storesync.exceptions import StoreSyncError
from storesync.models import init_db
from storesync.scheduler import SyncScheduler
from storesync.schemas.shopify import ENTITY_TYPES
from storesync.services.ingestion_service import IngestionService
from storesync.utils.logger import log


def build_ingestion() -> IngestionService:
    settings = get_settings()
    database = init_db()
    connector = ShopifyConnector(
        api_version=settings.shopify_api_version,
        timeout=settings.shopify_request_timeout,
    )
    return IngestionService(database, connector, page_size=settings.sync_page_size)


async def sync_one(tenant_id: int, entity_types: Optional[List[str]]) -> bool:
    ingestion = build_ingestion()
    try:
        results = await ingestion.trigger(tenant_id, entity_types)
    except StoreSyncError as e:
        log.error(f"Sync failed for tenant {tenant_id}: {str(e)}")
        return False

    for entity_type, result in results.items():
        log.info(f"  {entity_type}: {result['processed']} records")
    return True


async def sync_all() -> bool:
    scheduler = SyncScheduler(build_ingestion())
    summary = await scheduler.run_sweep()
    return all(result["success"] for result in summary.values())


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync Shopify data for one or all tenants")
    parser.add_argument("--tenant", type=int, help="Tenant id (default: every active tenant)")
    parser.add_argument(
        "--types", nargs="+", choices=ENTITY_TYPES,
        help="Entity types to sync (default: all, in dependency order)"
    )
    args = parser.parse_args()

    if args.tenant is not None:
        ok = asyncio.run(sync_one(args.tenant, args.types))
    else:
        ok = asyncio.run(sync_all())

    sys.exit(0 if ok else 1)
