"""AggregateRoot – owns domain events and enforces invariants."""

from __future__ import annotations

from overflow.kernel.ddd.domain_event import DomainEvent, DomainEventEnvelope
from overflow.kernel.ddd.entity import Entity


class AggregateRoot(Entity):
    """Aggregate root – owns domain events and enforces invariants.

    ``version`` counts the events the aggregate ever raised.  ``persisted_version``
    is the version last read from (or written to) the store; repositories use it
    as the expected version for optimistic concurrency.
    """

    aggregate_type: str = ""

    _version: int
    _persisted_version: int
    _events: list[DomainEventEnvelope]

    def __init__(self, id: str, version: int = 0) -> None:  # noqa: A002
        super().__init__(id)
        self._version = version
        self._persisted_version = version
        self._events = []

    def _raise_event(self, event: DomainEvent) -> None:
        """Record a domain event and bump the version."""
        self._version += 1
        self._events.append(
            DomainEventEnvelope(
                event=event,
                aggregate_id=self.id,
                aggregate_type=self.aggregate_type or type(self).__name__,
                sequence=self._version,
            )
        )

    def _touch(self) -> None:
        """Bump the version for a change that raises no event."""
        self._version += 1

    def pull_events(self) -> list[DomainEventEnvelope]:
        """Return and clear pending domain events."""
        events = list(self._events)
        self._events.clear()
        return events

    @property
    def pending_events(self) -> list[DomainEventEnvelope]:
        return list(self._events)

    @property
    def version(self) -> int:
        return self._version

    @property
    def persisted_version(self) -> int:
        return self._persisted_version

    def mark_persisted(self) -> None:
        """Called by repositories once the current version is stored."""
        self._persisted_version = self._version

    def _check_invariants(self) -> None:
        """Override to run invariant assertions after state changes."""


__all__ = ["AggregateRoot"]
