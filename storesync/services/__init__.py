"""Ingestion services"""

from storesync.services.upsert_writer import UpsertWriter
from storesync.services.checkpoint_store import CheckpointStore
from storesync.services.sync_log import SyncLogRecorder
from storesync.services.ingestion_service import IngestionService, TenantContext, SyncOutcome
from storesync.services.webhook_service import WebhookService, WebhookOutcome

__all__ = [
    "UpsertWriter",
    "CheckpointStore",
    "SyncLogRecorder",
    "IngestionService",
    "TenantContext",
    "SyncOutcome",
    "WebhookService",
    "WebhookOutcome"
]
