"""DDD building blocks – public re-export surface."""

from overflow.kernel.ddd.aggregate import AggregateRoot
from overflow.kernel.ddd.domain_event import DomainEvent, DomainEventEnvelope
from overflow.kernel.ddd.entity import Entity
from overflow.kernel.ddd.invariant import Invariant
from overflow.kernel.ddd.unit_of_work import UnitOfWork

__all__ = [
    "AggregateRoot",
    "DomainEvent",
    "DomainEventEnvelope",
    "Entity",
    "Invariant",
    "UnitOfWork",
]
