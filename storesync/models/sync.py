"""
Sync bookkeeping models

- SyncCheckpoint: high-water mark per (tenant, entity) for incremental resync
- SyncLog: one row per orchestrator run (running -> completed | failed)
- WebhookReceipt: claim row per delivered webhook event, used for deduplication
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, Index

from storesync.models.base import Base
from storesync.utils.helpers import utcnow

SYNC_RUNNING = "running"
SYNC_COMPLETED = "completed"
SYNC_FAILED = "failed"


class SyncCheckpoint(Base):
    """
    Largest source updated_at written by any completed run.

    Never decreases; the next run fetches records updated at or after it.
    """
    __tablename__ = "sync_checkpoints"

    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True)
    entity = Column(String(50), primary_key=True, index=True)  # customers, products, orders

    last_updated_at = Column(DateTime, nullable=True)
    last_run_at = Column(DateTime, default=utcnow)


class SyncLog(Base):
    """Lifecycle of one ingestion run, for observability only"""
    __tablename__ = "sync_logs"
    __table_args__ = (
        Index("ix_sync_logs_tenant_started", "tenant_id", "started_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)

    sync_type = Column(String(50), nullable=False)  # customers, products, orders
    status = Column(String(20), nullable=False, default=SYNC_RUNNING)
    records_processed = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)

    started_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "sync_type": self.sync_type,
            "status": self.status,
            "records_processed": self.records_processed,
            "error_message": self.error_message,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


class WebhookReceipt(Base):
    """
    Claimed webhook event.

    The unique constraint is the deduplication mechanism: a failed insert
    means the event was already processed.
    """
    __tablename__ = "webhook_receipts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "topic", "external_id", name="uq_webhook_receipts_event"),
        Index("ix_webhook_receipts_tenant_topic", "tenant_id", "topic"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)

    topic = Column(String(150), nullable=False)
    external_id = Column(String(255), nullable=False)

    received_at = Column(DateTime, default=utcnow)
