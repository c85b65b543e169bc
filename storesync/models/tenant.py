"""
Tenant model

A tenant is one connected Shopify store. Tenants are provisioned outside the
ingestion engine; the engine only reads them.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, BigInteger

from storesync.models.base import Base
from storesync.utils.helpers import utcnow

TENANT_ACTIVE = "active"
TENANT_INACTIVE = "inactive"


class Tenant(Base):
    """Isolation boundary owning every synced row"""
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)

    shop_domain = Column(String(255), unique=True, index=True, nullable=False)  # acme.myshopify.com
    access_token = Column(Text, nullable=True)  # Absent until the OAuth install completes
    shopify_shop_id = Column(BigInteger, nullable=True)
    plan = Column(String(50), default="basic")
    status = Column(String(20), default=TENANT_ACTIVE, index=True)  # active, inactive

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
