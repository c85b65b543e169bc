"""
Checkpoint Store

High-water mark per (tenant, entity). The stored value only ever moves
forward: advance() computes greatest(existing, candidate) inside the upsert
itself, so concurrent writers cannot move it backwards.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import case, select
from sqlalchemy.orm import Session

from storesync.models.sync import SyncCheckpoint
from storesync.services.upsert_writer import dialect_insert
from storesync.utils.helpers import to_naive_utc, utcnow


class CheckpointStore:

    def get(self, session: Session, tenant_id: int, entity: str) -> Optional[datetime]:
        return session.execute(
            select(SyncCheckpoint.last_updated_at).where(
                SyncCheckpoint.tenant_id == tenant_id,
                SyncCheckpoint.entity == entity,
            )
        ).scalar_one_or_none()

    def advance(self, session: Session, tenant_id: int, entity: str, candidate: datetime) -> None:
        """Raise the checkpoint to candidate unless it is already at or past it"""
        candidate = to_naive_utc(candidate)
        now = utcnow()

        insert = dialect_insert(session)
        stmt = insert(SyncCheckpoint.__table__).values(
            tenant_id=tenant_id,
            entity=entity,
            last_updated_at=candidate,
            last_run_at=now,
        )
        current = SyncCheckpoint.__table__.c.last_updated_at
        greatest = case(
            (current.is_(None), stmt.excluded.last_updated_at),
            (stmt.excluded.last_updated_at > current, stmt.excluded.last_updated_at),
            else_=current,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "entity"],
            set_={"last_updated_at": greatest, "last_run_at": stmt.excluded.last_run_at},
        )
        session.execute(stmt)
