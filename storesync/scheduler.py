"""
Scheduler for periodic tenant syncs

Uses APScheduler to sweep every active tenant on a fixed interval and run
customers, products and orders for each, in that order.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from storesync.config import get_settings
from storesync.exceptions import StoreSyncError
from storesync.schemas.shopify import ENTITY_TYPES
from storesync.services.ingestion_service import IngestionService
from storesync.utils.logger import log

SWEEP_JOB_ID = "tenant_sync_sweep"


class SyncScheduler:
    """
    Owns the AsyncIOScheduler for the periodic sweep

    start()/stop() are called from the application lifespan; nothing is
    scheduled at import time.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        interval_hours: Optional[float] = None,
        initial_delay_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.ingestion = ingestion
        self.interval_hours = interval_hours if interval_hours is not None else settings.sync_interval_hours
        self.initial_delay_seconds = (
            initial_delay_seconds if initial_delay_seconds is not None else settings.sync_initial_delay_seconds
        )
        self.scheduler = AsyncIOScheduler()

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self):
        """Schedule the sweep and start the scheduler (needs a running event loop)"""
        first_run = datetime.now() + timedelta(seconds=self.initial_delay_seconds)

        self.scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id=SWEEP_JOB_ID,
            name="Tenant Sync Sweep",
            next_run_time=first_run,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        self.scheduler.start()
        log.info(
            f"Scheduler started: sweep every {self.interval_hours}h, "
            f"first run in {self.initial_delay_seconds:.0f}s"
        )

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            log.info("Scheduler stopped")

    async def run_sweep(self) -> Dict[int, dict]:
        """
        Sync every active tenant with credentials

        A failing tenant is logged and recorded; the sweep moves on to the
        next one.

        Returns:
            {tenant_id: {"success": bool, "results" | "error": ...}}
        """
        tenants = await self.ingestion.list_active_tenants()

        if not tenants:
            log.info("Scheduled sync: no active tenants")
            return {}

        log.info(f"Scheduled sync starting for {len(tenants)} tenants")
        summary = {}

        for tenant in tenants:
            try:
                results = await self.ingestion.trigger(tenant.id, ENTITY_TYPES)
                summary[tenant.id] = {"success": True, "results": results}
            except StoreSyncError as e:
                log.error(f"Scheduled sync failed for tenant {tenant.id} ({tenant.shop_domain}): {str(e)}")
                summary[tenant.id] = {"success": False, "error": str(e)}
            except Exception as e:
                log.exception(f"Unexpected error syncing tenant {tenant.id}: {str(e)}")
                summary[tenant.id] = {"success": False, "error": str(e)}

        succeeded = sum(1 for result in summary.values() if result["success"])
        log.info(f"Scheduled sync finished: {succeeded}/{len(summary)} tenants succeeded")
        return summary

    def get_scheduled_jobs(self) -> List[dict]:
        """
        Get list of all scheduled jobs

        Returns:
            List of job info dicts
        """
        jobs = []

        for job in self.scheduler.get_jobs():
            next_run = job.next_run_time

            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': next_run.isoformat() if next_run else None,
                'trigger': str(job.trigger)
            })

        return jobs
