"""
Tests for the checkpoint store and the sync log recorder.
"""
from datetime import datetime

from storesync.models import SyncLog, SYNC_COMPLETED, SYNC_FAILED, SYNC_RUNNING
from storesync.services.checkpoint_store import CheckpointStore
from storesync.services.sync_log import MAX_ERROR_LENGTH, SyncLogRecorder


class TestCheckpointStore:
    """Checkpoint only ever moves forward"""

    def test_missing_checkpoint_is_none(self, database, tenant_id):
        store = CheckpointStore()
        assert database.run(store.get, tenant_id, "orders") is None

    def test_first_advance_sets_value(self, database, tenant_id):
        store = CheckpointStore()
        database.run(store.advance, tenant_id, "orders", datetime(2024, 1, 1, 10))
        assert database.run(store.get, tenant_id, "orders") == datetime(2024, 1, 1, 10)

    def test_never_decreases(self, database, tenant_id):
        store = CheckpointStore()
        database.run(store.advance, tenant_id, "orders", datetime(2024, 3, 1))
        database.run(store.advance, tenant_id, "orders", datetime(2024, 1, 1))
        assert database.run(store.get, tenant_id, "orders") == datetime(2024, 3, 1)

    def test_moves_forward(self, database, tenant_id):
        store = CheckpointStore()
        database.run(store.advance, tenant_id, "orders", datetime(2024, 1, 1))
        database.run(store.advance, tenant_id, "orders", datetime(2024, 3, 1))
        assert database.run(store.get, tenant_id, "orders") == datetime(2024, 3, 1)

    def test_entities_are_independent(self, database, tenant_id):
        store = CheckpointStore()
        database.run(store.advance, tenant_id, "orders", datetime(2024, 3, 1))
        assert database.run(store.get, tenant_id, "customers") is None


class TestSyncLogRecorder:
    """running -> completed | failed, exactly once"""

    def test_start_is_running(self, database, tenant_id):
        recorder = SyncLogRecorder()
        log_id = database.run(recorder.start, tenant_id, "orders")

        entry = database.run(lambda s: s.get(SyncLog, log_id))
        assert entry.status == SYNC_RUNNING
        assert entry.records_processed == 0
        assert entry.completed_at is None

    def test_complete(self, database, tenant_id):
        recorder = SyncLogRecorder()
        log_id = database.run(recorder.start, tenant_id, "orders")

        assert database.run(recorder.complete, log_id, 3) is True
        entry = database.run(lambda s: s.get(SyncLog, log_id))
        assert entry.status == SYNC_COMPLETED
        assert entry.records_processed == 3
        assert entry.completed_at is not None

    def test_fail_truncates_message(self, database, tenant_id):
        recorder = SyncLogRecorder()
        log_id = database.run(recorder.start, tenant_id, "orders")

        database.run(recorder.fail, log_id, 2, RuntimeError("x" * 5000))
        entry = database.run(lambda s: s.get(SyncLog, log_id))
        assert entry.status == SYNC_FAILED
        assert entry.records_processed == 2
        assert len(entry.error_message) == MAX_ERROR_LENGTH

    def test_terminal_rows_are_not_updated(self, database, tenant_id):
        recorder = SyncLogRecorder()
        log_id = database.run(recorder.start, tenant_id, "orders")
        database.run(recorder.complete, log_id, 3)

        assert database.run(recorder.fail, log_id, 0, RuntimeError("late")) is False
        entry = database.run(lambda s: s.get(SyncLog, log_id))
        assert entry.status == SYNC_COMPLETED
        assert entry.error_message is None

    def test_recent_most_recent_first_and_bounded(self, database, tenant_id):
        recorder = SyncLogRecorder()
        ids = [database.run(recorder.start, tenant_id, "orders") for _ in range(5)]

        recent = database.run(recorder.recent, tenant_id, 3)
        assert [entry.id for entry in recent] == list(reversed(ids))[:3]
