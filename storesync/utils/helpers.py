"""
Helper utilities
"""
import re
from datetime import datetime, timezone
from typing import Optional

from storesync.exceptions import InvalidShopDomainError

_SHOP_DOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9\-]*\.myshopify\.com$")


def utcnow() -> datetime:
    """Naive UTC now, matching how timestamps are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def normalize_shop_domain(shop_domain: Optional[str]) -> str:
    """
    Strip protocol and trailing slashes from a shop domain and validate it.

    Raises:
        InvalidShopDomainError: If the result is not a *.myshopify.com host
    """
    if not shop_domain:
        raise InvalidShopDomainError(shop_domain)

    domain = re.sub(r"^https?://", "", shop_domain.strip().lower()).rstrip("/")

    if not _SHOP_DOMAIN_RE.match(domain):
        raise InvalidShopDomainError(shop_domain)

    return domain
