"""Kernel messaging – transactional outbox ports."""
from __future__ import annotations

import abc
import dataclasses
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4


class OutboxStatus(str, Enum):
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"


@dataclasses.dataclass
class OutboxRecord:
    """Outbox record stored in the same transaction as the aggregate change.

    A record whose publish failed stays ``PENDING`` (with ``retry_count`` and
    ``last_error`` updated) so the relay never lets a later sequence of the
    same aggregate overtake it.
    """

    id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    aggregate_id: str = ""
    aggregate_type: str = ""
    sequence: int = 0
    event_type: str = ""
    topic: str = ""
    payload: bytes = b""
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    status: OutboxStatus = OutboxStatus.PENDING
    created_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    dispatched_at: datetime | None = None
    retry_count: int = 0
    last_error: str | None = None


class OutboxRepository(abc.ABC):
    """Port: persistence for outbox records."""

    @abc.abstractmethod
    async def save(self, record: OutboxRecord) -> None: ...

    @abc.abstractmethod
    async def get_pending(
        self, limit: int = 100, aggregate_id: str | None = None
    ) -> list[OutboxRecord]:
        """Pending records ordered by ``(aggregate_id, sequence)``."""

    @abc.abstractmethod
    async def mark_dispatched(self, record_id: str) -> None: ...

    @abc.abstractmethod
    async def record_failure(self, record_id: str, error: str) -> None: ...


__all__ = [
    "OutboxRecord",
    "OutboxRepository",
    "OutboxStatus",
]
