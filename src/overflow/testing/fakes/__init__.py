"""Testing fakes – in-memory doubles for the ports."""
from overflow.kernel.time import FrozenClock
from overflow.testing.fakes.channel import InMemoryEventChannel
from overflow.testing.fakes.clock import FakeClock
from overflow.testing.fakes.projection import (
    InMemoryDeadLetterStore,
    InMemoryProjectionStateStore,
    InMemorySearchProjection,
)
from overflow.testing.fakes.store import (
    InMemoryDatabase,
    InMemoryOutboxRepository,
    InMemoryQuestionRepository,
    InMemoryUnitOfWork,
)

__all__ = [
    "FakeClock",
    "FrozenClock",
    "InMemoryDatabase",
    "InMemoryDeadLetterStore",
    "InMemoryEventChannel",
    "InMemoryOutboxRepository",
    "InMemoryProjectionStateStore",
    "InMemoryQuestionRepository",
    "InMemorySearchProjection",
    "InMemoryUnitOfWork",
]
