"""EventPublisher – hands encoded envelopes to the message bus."""

from __future__ import annotations

from overflow.application.publishing.codec import EventCodec
from overflow.kernel.ddd import DomainEventEnvelope
from overflow.kernel.errors import ChannelUnavailableError
from overflow.kernel.messaging import Message, MessageBus, MessageHeaders, OutboxRecord
from overflow.observability import get_logger
from overflow.resilience import RetryPolicy

logger = get_logger(__name__)


class EventPublisher:
    """Publish domain events to one topic, keyed by aggregate id.

    Transient bus failures (``ChannelUnavailableError``) are retried with the
    given policy; once it is exhausted the error reaches the caller.
    """

    def __init__(
        self,
        bus: MessageBus,
        topic: str = "questions",
        *,
        codec: EventCodec | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._bus = bus
        self._topic = topic
        self._codec = codec or EventCodec()
        self._retry = retry_policy or RetryPolicy(retry_on=(ChannelUnavailableError,))

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def codec(self) -> EventCodec:
        return self._codec

    def to_outbox_record(self, envelope: DomainEventEnvelope) -> OutboxRecord:
        return OutboxRecord(
            id=envelope.event_id,
            aggregate_id=envelope.aggregate_id,
            aggregate_type=envelope.aggregate_type,
            sequence=envelope.sequence,
            event_type=envelope.event_type,
            topic=self._topic,
            payload=self._codec.encode(envelope),
            headers=_headers_for(envelope.event_type, envelope.sequence),
        )

    async def publish(self, envelope: DomainEventEnvelope) -> None:
        await self.publish_record(self.to_outbox_record(envelope))

    async def publish_record(self, record: OutboxRecord) -> None:
        message: Message[bytes] = Message(
            id=record.id,
            topic=record.topic or self._topic,
            key=record.aggregate_id,
            payload=record.payload,
            headers=MessageHeaders(extra=dict(record.headers)),
        )
        await self._retry.execute_async(lambda: self._bus.publish(message))
        logger.debug(
            "event.published",
            event_type=record.event_type,
            aggregate_id=record.aggregate_id,
            sequence=record.sequence,
        )


def _headers_for(event_type: str, sequence: int) -> dict[str, str]:
    return {"event-type": event_type, "sequence": str(sequence)}


__all__ = ["EventPublisher"]
