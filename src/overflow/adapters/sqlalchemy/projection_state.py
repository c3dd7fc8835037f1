"""SQLAlchemy adapter – projection bookkeeping and dead letters."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select

from overflow.adapters.sqlalchemy.models import DeadLetterRow, ProjectionStateRow
from overflow.application.projection import ProjectionState, ProjectionStateStore
from overflow.kernel.messaging import DeadLetterEntry, DeadLetterStore


class SqlAlchemyProjectionStateStore(ProjectionStateStore):
    """One row per question id; every call runs in its own short session."""

    def __init__(self, session_factory: Any) -> None:
        self._factory = session_factory

    async def get(self, question_id: str) -> ProjectionState | None:
        async with self._factory() as session:
            row = await session.get(ProjectionStateRow, question_id)
            if row is None:
                return None
            return ProjectionState(
                question_id=row.question_id,
                present=row.present,
                deleted=row.deleted,
                versions=dict(row.versions or {}),
                values=dict(row.values or {}),
            )

    async def put(self, state: ProjectionState) -> None:
        async with self._factory() as session:
            await session.merge(
                ProjectionStateRow(
                    question_id=state.question_id,
                    present=state.present,
                    deleted=state.deleted,
                    versions=dict(state.versions),
                    values=dict(state.values),
                )
            )
            await session.commit()


class SqlAlchemyDeadLetterStore(DeadLetterStore):
    """Dead-lettered deliveries kept for inspection and manual replay."""

    def __init__(self, session_factory: Any) -> None:
        self._factory = session_factory

    async def push(self, entry: DeadLetterEntry) -> None:
        async with self._factory() as session:
            session.add(
                DeadLetterRow(
                    id=entry.id,
                    message_id=entry.message_id,
                    key=entry.key,
                    payload=entry.payload,
                    headers=dict(entry.headers),
                    reason=entry.reason,
                    failed_at=entry.failed_at,
                    retry_count=entry.retry_count,
                )
            )
            await session.commit()

    async def list(self, limit: int = 100) -> list[DeadLetterEntry]:
        async with self._factory() as session:
            result = await session.execute(
                select(DeadLetterRow).order_by(DeadLetterRow.failed_at, DeadLetterRow.id).limit(limit)
            )
            return [
                DeadLetterEntry(
                    id=row.id,
                    message_id=row.message_id,
                    key=row.key,
                    payload=bytes(row.payload),
                    headers=dict(row.headers or {}),
                    reason=row.reason,
                    failed_at=row.failed_at,
                    retry_count=row.retry_count,
                )
                for row in result.scalars().all()
            ]


__all__ = ["SqlAlchemyDeadLetterStore", "SqlAlchemyProjectionStateStore"]
