"""Domain events and their envelopes."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4


@dataclasses.dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for domain events.

    Subclasses add their own payload fields.  Events only carry what the
    consumers need to rebuild their state, never the whole aggregate.

    Example::

        @dataclasses.dataclass(frozen=True, kw_only=True)
        class QuestionDeleted(DomainEvent):
            question_id: str
    """

    event_id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = dataclasses.field(
        default_factory=lambda: datetime.now(UTC)
    )

    @property
    def event_type(self) -> str:
        return type(self).__name__


@dataclasses.dataclass(frozen=True)
class DomainEventEnvelope:
    """Wraps a ``DomainEvent`` with routing & ordering metadata.

    ``sequence`` is the aggregate version the event produced.  It grows by one
    per event of the same aggregate and is what consumers use to discard stale
    or duplicate deliveries.
    """

    event: DomainEvent
    aggregate_id: str
    aggregate_type: str
    sequence: int
    correlation_id: str | None = None
    schema_version: int = 1
    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    @property
    def event_type(self) -> str:
        return self.event.event_type

    @property
    def event_id(self) -> str:
        return self.event.event_id


__all__ = ["DomainEvent", "DomainEventEnvelope"]
