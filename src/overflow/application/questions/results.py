"""Result of a committed mutation."""
from __future__ import annotations

import dataclasses
from typing import Generic, TypeVar

from overflow.kernel.ddd import DomainEventEnvelope

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class Committed(Generic[T]):
    """A store mutation that committed.

    ``sync_pending`` is ``True`` when the events could not be published yet:
    the change stands, but the search projection may lag until the outbox
    relay or the reconciliation loop catches up.
    """

    value: T
    events: tuple[DomainEventEnvelope, ...] = ()
    sync_pending: bool = False

    @property
    def degraded(self) -> bool:
        return self.sync_pending


__all__ = ["Committed"]
