"""SQLAlchemy adapter – SqlAlchemyOutboxRepository."""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, update

from overflow.adapters.sqlalchemy.models import OutboxRow
from overflow.kernel.messaging import OutboxRecord, OutboxRepository, OutboxStatus


class SqlAlchemyOutboxRepository(OutboxRepository):
    """SQLAlchemy-backed outbox repository."""

    def __init__(self, session: Any) -> None:
        self._session = session

    async def save(self, record: OutboxRecord) -> None:
        self._session.add(self._record_to_row(record))

    async def get_pending(
        self, limit: int = 100, aggregate_id: str | None = None
    ) -> list[OutboxRecord]:
        stmt = select(OutboxRow).where(OutboxRow.status == OutboxStatus.PENDING.value)
        if aggregate_id is not None:
            stmt = stmt.where(OutboxRow.aggregate_id == aggregate_id)
        stmt = stmt.order_by(OutboxRow.aggregate_id, OutboxRow.sequence).limit(limit)
        result = await self._session.execute(stmt)
        return [self._row_to_record(row) for row in result.scalars().all()]

    async def mark_dispatched(self, record_id: str) -> None:
        await self._session.execute(
            update(OutboxRow)
            .where(OutboxRow.id == record_id)
            .values(status=OutboxStatus.DISPATCHED.value, dispatched_at=datetime.now(UTC))
        )

    async def record_failure(self, record_id: str, error: str) -> None:
        await self._session.execute(
            update(OutboxRow)
            .where(OutboxRow.id == record_id)
            .values(retry_count=OutboxRow.retry_count + 1, last_error=error)
        )

    @staticmethod
    def _record_to_row(record: OutboxRecord) -> OutboxRow:
        return OutboxRow(
            id=record.id,
            aggregate_id=record.aggregate_id,
            aggregate_type=record.aggregate_type,
            sequence=record.sequence,
            event_type=record.event_type,
            topic=record.topic,
            payload=record.payload,
            headers=dict(record.headers),
            status=record.status.value,
            created_at=record.created_at,
            dispatched_at=record.dispatched_at,
            retry_count=record.retry_count,
            last_error=record.last_error,
        )

    @staticmethod
    def _row_to_record(row: OutboxRow) -> OutboxRecord:
        return OutboxRecord(
            id=row.id,
            aggregate_id=row.aggregate_id,
            aggregate_type=row.aggregate_type,
            sequence=row.sequence,
            event_type=row.event_type,
            topic=row.topic,
            payload=bytes(row.payload),
            headers=dict(row.headers or {}),
            status=OutboxStatus(row.status),
            created_at=row.created_at,
            dispatched_at=row.dispatched_at,
            retry_count=row.retry_count,
            last_error=row.last_error,
        )


__all__ = ["SqlAlchemyOutboxRepository"]
