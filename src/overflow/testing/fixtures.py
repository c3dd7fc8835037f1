"""Testing fixtures – pytest plugin wiring the in-memory doubles.

Enable with ``pytest_plugins = ["overflow.testing.fixtures"]``.
"""
from __future__ import annotations

import pytest

from overflow.application.projection import IndexProjector, ProjectionConsumer
from overflow.application.publishing import EventPublisher, OutboxRelay
from overflow.application.questions import QuestionService
from overflow.application.reconciliation import ConsistencyVerifier
from overflow.domain import StaticTagValidator
from overflow.kernel.errors import ChannelUnavailableError, ProjectionUnavailableError
from overflow.kernel.security import Caller
from overflow.resilience import RetryPolicy
from overflow.testing.fakes import (
    FakeClock,
    InMemoryDatabase,
    InMemoryDeadLetterStore,
    InMemoryEventChannel,
    InMemoryProjectionStateStore,
    InMemorySearchProjection,
)

KNOWN_TAGS = ("python", "asyncio", "kafka", "sqlalchemy", "typesense")


@pytest.fixture
def fake_clock():
    """A clock pinned to 2026-01-01 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def alice() -> Caller:
    return Caller("alice", "Alice")


@pytest.fixture
def bob() -> Caller:
    return Caller("bob", "Bob")


@pytest.fixture
def memory_db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def event_channel() -> InMemoryEventChannel:
    return InMemoryEventChannel()


@pytest.fixture
def search_projection() -> InMemorySearchProjection:
    projection = InMemorySearchProjection()
    projection.exists = True
    return projection


@pytest.fixture
def projection_states() -> InMemoryProjectionStateStore:
    return InMemoryProjectionStateStore()


@pytest.fixture
def dead_letters() -> InMemoryDeadLetterStore:
    return InMemoryDeadLetterStore()


@pytest.fixture
def outbox_relay(memory_db, event_channel) -> OutboxRelay:
    publisher = EventPublisher(
        event_channel,
        "questions",
        retry_policy=RetryPolicy.no_wait(2, (ChannelUnavailableError,)),
    )
    return OutboxRelay(memory_db.unit_of_work, publisher)


@pytest.fixture
def question_service(memory_db, outbox_relay, fake_clock) -> QuestionService:
    return QuestionService(
        memory_db.unit_of_work, StaticTagValidator(KNOWN_TAGS), outbox_relay, clock=fake_clock
    )


@pytest.fixture
def index_projector(search_projection, projection_states) -> IndexProjector:
    return IndexProjector(search_projection, projection_states)


@pytest.fixture
def projection_consumer(event_channel, index_projector, dead_letters) -> ProjectionConsumer:
    return ProjectionConsumer(
        event_channel,
        index_projector,
        dead_letters,
        retry_policy=RetryPolicy.no_wait(3, (ProjectionUnavailableError,)),
        workers=2,
    )


@pytest.fixture
def consistency_verifier(memory_db, search_projection, index_projector) -> ConsistencyVerifier:
    return ConsistencyVerifier(memory_db.unit_of_work, search_projection, index_projector)


__all__ = [
    "KNOWN_TAGS",
    "alice",
    "bob",
    "consistency_verifier",
    "dead_letters",
    "event_channel",
    "fake_clock",
    "index_projector",
    "memory_db",
    "outbox_relay",
    "projection_consumer",
    "projection_states",
    "question_service",
    "search_projection",
]
