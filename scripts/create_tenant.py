#!/usr/bin/env python3
"""
Create or update a tenant

Provisioning normally happens in the Shopify install flow; this script is for
development stores and manual onboarding. The access token is encrypted with
TOKEN_ENCRYPTION_KEY when one is configured.

Usage:
    python scripts/create_tenant.py acme.myshopify.com shpat_xxx [--shop-id 123456]
"""
import argparse
from typing import Optional

from sqlalchemy import select

from storesync.models import Tenant, init_db
from storesync.utils.credentials import encrypt_access_token
from storesync.utils.helpers import normalize_shop_domain, utcnow
from storesync.utils.logger import log


def upsert_tenant(session, shop_domain: str, access_token: str, shopify_shop_id: Optional[int] = None) -> Tenant:
    tenant = session.execute(select(Tenant).where(Tenant.shop_domain == shop_domain)).scalar_one_or_none()

    if tenant is None:
        tenant = Tenant(shop_domain=shop_domain)
        session.add(tenant)

    tenant.access_token = encrypt_access_token(access_token)
    if shopify_shop_id is not None:
        tenant.shopify_shop_id = shopify_shop_id
    tenant.updated_at = utcnow()
    session.flush()
    return tenant


def main(shop_domain: str, access_token: str, shopify_shop_id: Optional[int] = None):
    database = init_db()
    domain = normalize_shop_domain(shop_domain)

    tenant = database.run(upsert_tenant, domain, access_token, shopify_shop_id)
    log.info(f"Tenant {tenant.id} ready: {tenant.shop_domain} ({tenant.status})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or update a tenant")
    parser.add_argument("shop_domain", help="Store domain, e.g. acme.myshopify.com")
    parser.add_argument("access_token", help="Shopify Admin API access token")
    parser.add_argument("--shop-id", type=int, default=None, help="Numeric Shopify shop id")
    args = parser.parse_args()

    main(args.shop_domain, args.access_token, args.shop_id)
