"""
Ingestion Service
Pulls customers, products and orders from Shopify for one tenant and
persists them through the upsert writer, one transaction per page.

Run lifecycle for one (tenant, entity):
    1. Open a running SyncLog
    2. Read the checkpoint (records updated at or after it are fetched)
    3. Fetch pages by since_id until an empty or short page
    4. Write each page in its own transaction
    5. Complete the log, then raise the checkpoint to the largest
       updated_at seen (only when something was processed)

On failure the log is marked failed with the partial count and the
checkpoint is left untouched, so the next run re-fetches from the old mark.
Re-fetching is safe because every write is an idempotent upsert.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storesync.config import get_settings
from storesync.connectors.base import BaseConnector
from storesync.exceptions import MissingCredentialError, SyncRunError, TenantNotFoundError, UnsupportedEntityError
from storesync.models.base import Database
from storesync.models.sync import SYNC_COMPLETED
from storesync.models.tenant import Tenant, TENANT_ACTIVE
from storesync.schemas.shopify import ENTITY_TYPES, parse_records
from storesync.services.checkpoint_store import CheckpointStore
from storesync.services.sync_log import SyncLogRecorder
from storesync.services.upsert_writer import UpsertWriter
from storesync.utils.credentials import resolve_access_token
from storesync.utils.helpers import normalize_shop_domain
from storesync.utils.logger import log


@dataclass(frozen=True)
class TenantContext:
    """Everything a run needs to know about its tenant"""
    tenant_id: int
    shop_domain: str
    access_token: str


@dataclass
class SyncOutcome:
    """Result of one successful run"""
    entity_type: str
    processed: int
    status: str
    log_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {"success": self.status == SYNC_COMPLETED, "processed": self.processed}


def _ordered_entity_types(entity_types: Optional[Iterable[str]]) -> List[str]:
    """Requested subset in the fixed customers -> products -> orders order"""
    if entity_types is None:
        return list(ENTITY_TYPES)

    requested = list(entity_types)
    for entity_type in requested:
        if entity_type not in ENTITY_TYPES:
            raise UnsupportedEntityError(entity_type)

    return [entity_type for entity_type in ENTITY_TYPES if entity_type in requested]


class IngestionService:
    """
    Orchestrates tenant syncs

    Holds no per-run state, so one instance can serve concurrent runs for
    different tenants.
    """

    def __init__(
        self,
        database: Database,
        connector: BaseConnector,
        page_size: Optional[int] = None,
        writer: Optional[UpsertWriter] = None,
        checkpoints: Optional[CheckpointStore] = None,
        sync_logs: Optional[SyncLogRecorder] = None,
    ):
        self.database = database
        self.connector = connector
        self.page_size = page_size or get_settings().sync_page_size
        self.writer = writer or UpsertWriter()
        self.checkpoints = checkpoints or CheckpointStore()
        self.sync_logs = sync_logs or SyncLogRecorder()

    async def sync(self, tenant: TenantContext, entity_type: str) -> SyncOutcome:
        """
        Run one incremental sync for one (tenant, entity)

        Raises:
            UnsupportedEntityError: Unknown entity type (nothing is recorded)
            SyncRunError: The run failed after it started; partial work is
                committed and reflected in the failed SyncLog
        """
        if entity_type not in ENTITY_TYPES:
            raise UnsupportedEntityError(entity_type)

        tenant_id = tenant.tenant_id
        log_id = await self.database.run_async(self.sync_logs.start, tenant_id, entity_type)
        processed = 0

        log.info(f"Starting {entity_type} sync for tenant {tenant_id} ({tenant.shop_domain})")

        try:
            updated_since = await self.database.run_async(self.checkpoints.get, tenant_id, entity_type)
            since_id = None
            max_updated_at: Optional[datetime] = None

            while True:
                raw_records = await self.connector.fetch_page(
                    tenant.access_token,
                    tenant.shop_domain,
                    entity_type,
                    self.page_size,
                    since_id=since_id,
                    updated_since=updated_since,
                )

                if not raw_records:
                    break

                records = parse_records(entity_type, raw_records)
                await self.database.run_async(self.writer.write_page, tenant_id, entity_type, records)

                processed += len(records)
                since_id = records[-1].id

                for record in records:
                    candidate = record.source_updated_at
                    if candidate is not None and (max_updated_at is None or candidate > max_updated_at):
                        max_updated_at = candidate

                log.info(f"Processed {processed} {entity_type} for tenant {tenant_id}")

                if len(raw_records) < self.page_size:
                    break

            await self.database.run_async(self._finish_success, tenant_id, entity_type, log_id, processed, max_updated_at)

        except Exception as e:
            log.error(f"{entity_type} sync failed for tenant {tenant_id} after {processed} records: {str(e)}")
            try:
                await self.database.run_async(self.sync_logs.fail, log_id, processed, e)
            except Exception as log_error:
                log.error(f"Could not mark sync log {log_id} failed: {str(log_error)}")
            raise SyncRunError(entity_type, processed, log_id, str(e)) from e

        log.info(f"Completed {entity_type} sync for tenant {tenant_id}: {processed} records")
        return SyncOutcome(entity_type=entity_type, processed=processed, status=SYNC_COMPLETED, log_id=log_id)

    def _finish_success(
        self,
        session: Session,
        tenant_id: int,
        entity_type: str,
        log_id: int,
        processed: int,
        max_updated_at: Optional[datetime],
    ):
        self.sync_logs.complete(session, log_id, processed)
        if processed > 0 and max_updated_at is not None:
            self.checkpoints.advance(session, tenant_id, entity_type, max_updated_at)

    def _load_tenant(self, session: Session, tenant_id: int) -> Optional[Tenant]:
        return session.get(Tenant, tenant_id)

    async def build_context(self, tenant_id: int) -> TenantContext:
        """
        Check run preconditions and resolve the tenant's credential

        Raises:
            TenantNotFoundError, MissingCredentialError, InvalidShopDomainError,
            CredentialError
        """
        tenant = await self.database.run_async(self._load_tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        if not tenant.access_token:
            raise MissingCredentialError(tenant_id)

        shop_domain = normalize_shop_domain(tenant.shop_domain)
        return TenantContext(
            tenant_id=tenant.id,
            shop_domain=shop_domain,
            access_token=resolve_access_token(tenant),
        )

    async def trigger(self, tenant_id: int, entity_types: Optional[Iterable[str]] = None) -> Dict[str, dict]:
        """
        Manual ingestion for one tenant

        Entity types run sequentially in dependency order; the first failure
        stops the remaining ones and propagates as SyncRunError.

        Returns:
            {entity_type: {"success": bool, "processed": int}}
        """
        context = await self.build_context(tenant_id)
        ordered = _ordered_entity_types(entity_types)

        results = {}
        for entity_type in ordered:
            outcome = await self.sync(context, entity_type)
            results[entity_type] = outcome.to_dict()

        return results

    def _recent_logs(self, session: Session, tenant_id: int, limit: int) -> List[dict]:
        return [entry.to_dict() for entry in self.sync_logs.recent(session, tenant_id, limit)]

    async def list_logs(self, tenant_id: int, limit: Optional[int] = None) -> List[dict]:
        """Sync history for a tenant, most recent first"""
        if limit is None:
            limit = get_settings().sync_log_limit
        return await self.database.run_async(self._recent_logs, tenant_id, limit)

    def _active_tenants(self, session: Session) -> List[Tenant]:
        active = session.execute(
            select(Tenant).where(Tenant.status == TENANT_ACTIVE).order_by(Tenant.id)
        ).scalars().all()

        ready = []
        for tenant in active:
            if tenant.access_token:
                ready.append(tenant)
            else:
                log.warning(f"Skipping tenant {tenant.id} ({tenant.shop_domain}): no access token")
        return ready

    async def list_active_tenants(self) -> List[Tenant]:
        """Active tenants that completed the Shopify install"""
        return await self.database.run_async(self._active_tenants)
