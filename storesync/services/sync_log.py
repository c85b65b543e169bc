"""
Sync Log Recorder

One SyncLog row per orchestrator run. Rows move running -> completed or
running -> failed exactly once; terminal rows are never updated again.
"""
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storesync.models.sync import SyncLog, SYNC_RUNNING, SYNC_COMPLETED, SYNC_FAILED
from storesync.utils.helpers import utcnow

MAX_ERROR_LENGTH = 2000


class SyncLogRecorder:

    def start(self, session: Session, tenant_id: int, entity: str) -> int:
        """Insert a running log row and return its id"""
        entry = SyncLog(
            tenant_id=tenant_id,
            sync_type=entity,
            status=SYNC_RUNNING,
            records_processed=0,
            started_at=utcnow(),
        )
        session.add(entry)
        session.flush()
        return entry.id

    def _finish(self, session: Session, log_id: int, status: str, processed: int, error: Optional[str]) -> bool:
        result = session.execute(
            update(SyncLog)
            .where(SyncLog.id == log_id, SyncLog.status == SYNC_RUNNING)
            .values(
                status=status,
                records_processed=processed,
                error_message=error,
                completed_at=utcnow(),
            )
        )
        return result.rowcount == 1

    def complete(self, session: Session, log_id: int, processed: int) -> bool:
        """Mark a running log completed. Returns False if it was already terminal."""
        return self._finish(session, log_id, SYNC_COMPLETED, processed, None)

    def fail(self, session: Session, log_id: int, processed: int, error) -> bool:
        """Mark a running log failed with the partial count and a truncated error message"""
        message = str(error) or type(error).__name__
        return self._finish(session, log_id, SYNC_FAILED, processed, message[:MAX_ERROR_LENGTH])

    def recent(self, session: Session, tenant_id: int, limit: int = 50) -> List[SyncLog]:
        """Most recent runs first"""
        return list(session.execute(
            select(SyncLog)
            .where(SyncLog.tenant_id == tenant_id)
            .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
            .limit(limit)
        ).scalars())
