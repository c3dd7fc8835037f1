"""Composition root – wires the write side and the read side from settings.

``backend="memory"`` runs everything in-process on the in-memory doubles;
``backend="production"`` uses SQLAlchemy, Kafka and Typesense::

    app = build_app(EnvSettingsLoader().load(OverflowSettings))
    await app.start()
    await app.run(stop_event)
"""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Any, Awaitable, Callable

from overflow.application.projection import (
    IndexProjector,
    ProjectionConsumer,
    ProjectionStateStore,
    SearchProjection,
)
from overflow.application.publishing import EventCodec, EventPublisher, OutboxRelay
from overflow.application.questions import QuestionService
from overflow.application.reconciliation import ConsistencyVerifier, ReconciliationWorker
from overflow.config import OverflowSettings
from overflow.domain import StaticTagValidator, TagValidator
from overflow.kernel.ddd import UnitOfWork
from overflow.kernel.errors import ChannelUnavailableError, ProjectionUnavailableError
from overflow.kernel.messaging import DeadLetterStore, EventChannel, MessageBus
from overflow.kernel.time import Clock
from overflow.observability import configure_logging, get_logger
from overflow.resilience import RetryPolicy

logger = get_logger(__name__)


@dataclasses.dataclass
class OverflowApp:
    """Every long-lived component of one process."""

    settings: OverflowSettings
    service: QuestionService
    relay: OutboxRelay
    projector: IndexProjector
    consumer: ProjectionConsumer
    verifier: ConsistencyVerifier
    reconciliation: ReconciliationWorker
    uow_factory: Callable[[], UnitOfWork]
    bus: MessageBus
    channel: EventChannel
    projection: SearchProjection
    states: ProjectionStateStore
    dead_letters: DeadLetterStore
    on_start: list[Callable[[], Awaitable[Any]]] = dataclasses.field(default_factory=list)
    on_close: list[Callable[[], Awaitable[Any]]] = dataclasses.field(default_factory=list)

    async def start(self) -> None:
        for hook in self.on_start:
            await hook()
        await self.projection.ensure_collection()
        await self.channel.start()
        logger.info("app.started", backend=self.settings.backend)

    async def run(self, stop: asyncio.Event) -> None:
        """Run the relay sweep, the consumer and reconciliation until *stop* is set."""
        consumer = asyncio.create_task(self.consumer.run(), name="projection-consumer")
        background = [
            asyncio.create_task(
                self.relay.run(stop, self.settings.outbox_poll_seconds), name="outbox-relay"
            ),
            asyncio.create_task(self.reconciliation.run(stop), name="reconciliation"),
        ]
        await stop.wait()
        await self.channel.stop()
        await asyncio.gather(consumer, *background)

    async def close(self) -> None:
        for hook in reversed(self.on_close):
            await hook()
        logger.info("app.closed", backend=self.settings.backend)


def build_app(
    settings: OverflowSettings | None = None,
    *,
    clock: Clock | None = None,
    tag_validator: TagValidator | None = None,
    configure_logs: bool = False,
) -> OverflowApp:
    settings = settings or OverflowSettings()
    if configure_logs:
        configure_logging(settings.log_level, json_output=settings.log_json)
    if settings.backend == "production":
        parts = _production_parts(settings)
    else:
        parts = _memory_parts()

    uow_factory = parts["uow_factory"]
    codec = EventCodec()
    publisher = EventPublisher(
        parts["bus"],
        settings.kafka_topic,
        codec=codec,
        retry_policy=RetryPolicy(
            max_attempts=settings.publish_max_attempts,
            base_delay=settings.publish_base_delay,
            retry_on=(ChannelUnavailableError,),
        ),
    )
    relay = OutboxRelay(uow_factory, publisher)
    service = QuestionService(
        uow_factory,
        tag_validator or StaticTagValidator(settings.tags),
        relay,
        clock=clock,
    )
    projector = IndexProjector(parts["projection"], parts["states"])
    consumer = ProjectionConsumer(
        parts["channel"],
        projector,
        parts["dead_letters"],
        codec=codec,
        retry_policy=RetryPolicy(
            max_attempts=settings.projector_max_attempts,
            base_delay=settings.projector_base_delay,
            retry_on=(ProjectionUnavailableError,),
        ),
        workers=settings.projector_workers,
    )
    verifier = ConsistencyVerifier(uow_factory, parts["projection"], projector)
    return OverflowApp(
        settings=settings,
        service=service,
        relay=relay,
        projector=projector,
        consumer=consumer,
        verifier=verifier,
        reconciliation=ReconciliationWorker(verifier, settings.reconcile_interval_seconds),
        uow_factory=uow_factory,
        bus=parts["bus"],
        channel=parts["channel"],
        projection=parts["projection"],
        states=parts["states"],
        dead_letters=parts["dead_letters"],
        on_start=parts["on_start"],
        on_close=parts["on_close"],
    )


def _memory_parts() -> dict[str, Any]:
    from overflow.testing.fakes import (
        InMemoryDatabase,
        InMemoryDeadLetterStore,
        InMemoryEventChannel,
        InMemoryProjectionStateStore,
        InMemorySearchProjection,
    )

    db = InMemoryDatabase()
    channel = InMemoryEventChannel()
    return {
        "uow_factory": db.unit_of_work,
        "bus": channel,
        "channel": channel,
        "projection": InMemorySearchProjection(),
        "states": InMemoryProjectionStateStore(),
        "dead_letters": InMemoryDeadLetterStore(),
        "on_start": [],
        "on_close": [],
    }


def _production_parts(settings: OverflowSettings) -> dict[str, Any]:
    from overflow.adapters.kafka import KafkaEventChannel, KafkaMessageBus
    from overflow.adapters.sqlalchemy import (
        SqlAlchemyDeadLetterStore,
        SqlAlchemyProjectionStateStore,
        SqlAlchemySessionFactory,
        SqlAlchemyUnitOfWork,
    )
    from overflow.adapters.typesense import TypesenseSearchProjection

    sessions = SqlAlchemySessionFactory(settings.database_url)
    bus = KafkaMessageBus(settings.kafka_bootstrap_servers)
    channel = KafkaEventChannel(
        settings.kafka_bootstrap_servers, settings.kafka_topic, settings.kafka_group_id
    )
    projection = TypesenseSearchProjection(
        settings.typesense_url, settings.typesense_api_key, settings.collection_name
    )
    return {
        "uow_factory": lambda: SqlAlchemyUnitOfWork(sessions),
        "bus": bus,
        "channel": channel,
        "projection": projection,
        "states": SqlAlchemyProjectionStateStore(sessions),
        "dead_letters": SqlAlchemyDeadLetterStore(sessions),
        "on_start": [sessions.create_schema, bus.start],
        "on_close": [sessions.dispose, projection.aclose, bus.stop],
    }


__all__ = ["OverflowApp", "build_app"]
