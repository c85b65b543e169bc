"""
storesync Shopify Ingestion Service
Main FastAPI application
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from storesync.config import get_settings
from storesync.connectors.base import BaseConnector
from storesync.connectors.shopify import ShopifyConnector
from storesync.models.base import Database, get_database, init_db
from storesync.scheduler import SyncScheduler
from storesync.services.ingestion_service import IngestionService
from storesync.services.webhook_service import WebhookService
from storesync.utils.logger import log
from storesync import __version__

# Import routers
from storesync.api import health, sync, webhooks


def create_app(
    database: Optional[Database] = None,
    connector: Optional[BaseConnector] = None,
    scheduler_enabled: Optional[bool] = None,
) -> FastAPI:
    """
    Build the application and its services

    Args:
        database: Connection pool (defaults to the one built from settings)
        connector: Source connector (defaults to the Shopify Admin API)
        scheduler_enabled: Override settings.scheduler_enabled
    """
    settings = get_settings()
    database = database or get_database()
    connector = connector or ShopifyConnector(
        api_version=settings.shopify_api_version,
        timeout=settings.shopify_request_timeout,
    )
    if scheduler_enabled is None:
        scheduler_enabled = settings.scheduler_enabled

    ingestion = IngestionService(database, connector, page_size=settings.sync_page_size)
    webhook_service = WebhookService(database, webhook_secret=settings.webhook_secret)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        # Startup
        log.info(f"Starting {settings.app_name} v{__version__}")
        log.info(f"Environment: {settings.environment}")

        init_db(database)

        scheduler = None
        if scheduler_enabled:
            scheduler = SyncScheduler(ingestion)
            scheduler.start()
        else:
            log.info("Scheduler disabled")
        app.state.scheduler = scheduler

        yield

        # Shutdown
        if scheduler:
            scheduler.stop()
        database.dispose()
        log.info("Shutting down application")

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="""
        Multi-tenant Shopify ingestion service

        - Incremental customers, products and orders sync per tenant
        - Idempotent upserts keyed by (tenant, Shopify id)
        - Signed, deduplicated webhook intake
        - Periodic sweep of every active tenant
        """,
        lifespan=lifespan
    )

    app.state.database = database
    app.state.ingestion = ingestion
    app.state.webhooks = webhook_service
    app.state.scheduler = None

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(sync.router)
    app.include_router(webhooks.router)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storesync.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
