"""
Tests for the periodic tenant sweep.
"""
import asyncio

from storesync.exceptions import SourceError
from storesync.scheduler import SWEEP_JOB_ID, SyncScheduler
from storesync.services.ingestion_service import IngestionService
from storesync.utils.logger import log

from factories import FakeConnector, customer_payload


class TestSweep:

    def test_no_tenants_is_noop(self, database, connector):
        scheduler = SyncScheduler(IngestionService(database, connector))

        assert asyncio.run(scheduler.run_sweep()) == {}
        assert connector.calls == []

    def test_runs_every_entity_per_tenant(self, database, make_tenant, connector):
        tenant_id = make_tenant()
        connector.script("customers", [customer_payload(1)])
        scheduler = SyncScheduler(IngestionService(database, connector))

        summary = asyncio.run(scheduler.run_sweep())

        assert summary[tenant_id]["success"] is True
        assert summary[tenant_id]["results"]["customers"]["processed"] == 1
        assert [call["entity_type"] for call in connector.calls] == ["customers", "products", "orders"]

    def test_failing_tenant_does_not_stop_sweep(self, database, make_tenant, connector):
        broken = make_tenant("broken.myshopify.com")
        healthy = make_tenant("healthy.myshopify.com")

        class SelectiveConnector(FakeConnector):
            async def fetch_page(self, access_token, shop_domain, entity_type, page_size, since_id=None, updated_since=None):
                if shop_domain == "broken.myshopify.com":
                    raise SourceError("store unavailable")
                return await super().fetch_page(access_token, shop_domain, entity_type, page_size, since_id, updated_since)

        scheduler = SyncScheduler(IngestionService(database, SelectiveConnector()))

        summary = asyncio.run(scheduler.run_sweep())

        assert summary[broken]["success"] is False
        assert "store unavailable" in summary[broken]["error"]
        assert summary[healthy]["success"] is True

    def test_skips_tenants_without_credentials(self, database, make_tenant, connector):
        skipped = make_tenant(access_token=None)
        scheduler = SyncScheduler(IngestionService(database, connector))
        messages = []
        sink_id = log.add(lambda message: messages.append(str(message)), level="WARNING")

        try:
            summary = asyncio.run(scheduler.run_sweep())
        finally:
            log.remove(sink_id)

        assert summary == {}
        assert connector.calls == []
        assert any(f"Skipping tenant {skipped}" in message for message in messages)


class TestLifecycle:

    def test_start_and_stop(self, database, connector):
        scheduler = SyncScheduler(IngestionService(database, connector), interval_hours=6, initial_delay_seconds=30)

        async def _cycle():
            scheduler.start()
            try:
                return scheduler.running, scheduler.get_scheduled_jobs()
            finally:
                scheduler.stop()

        running, jobs = asyncio.run(_cycle())

        assert running is True
        assert [job["id"] for job in jobs] == [SWEEP_JOB_ID]
        assert jobs[0]["next_run"] is not None
        assert scheduler.running is False
