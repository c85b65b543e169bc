"""
Shared fixtures

Settings are read from the environment on first use, so the test
environment is set here before anything from storesync is imported.
"""
import os

os.environ.setdefault("WEBHOOK_SECRET", "test-webhook-secret")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("TOKEN_ENCRYPTION_KEY", None)
os.environ.pop("LOG_DIR", None)

import pytest

from storesync.models import Database, Tenant, TENANT_ACTIVE
from storesync.utils.helpers import utcnow

from factories import FakeConnector

WEBHOOK_SECRET = os.environ["WEBHOOK_SECRET"]


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database per test"""
    db = Database(f"sqlite:///{tmp_path / 'storesync-test.db'}", max_retries=1)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def make_tenant(database):
    """Insert a tenant and return its id"""

    def _make(shop_domain="acme.myshopify.com", access_token="shpat_test", status=TENANT_ACTIVE):
        def _insert(session):
            tenant = Tenant(
                shop_domain=shop_domain,
                access_token=access_token,
                status=status,
                created_at=utcnow(),
                updated_at=utcnow(),
            )
            session.add(tenant)
            session.flush()
            return tenant.id

        return database.run(_insert)

    return _make


@pytest.fixture
def tenant_id(make_tenant):
    return make_tenant()


@pytest.fixture
def connector():
    return FakeConnector()
