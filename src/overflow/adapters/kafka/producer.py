"""Kafka adapter – KafkaMessageBus."""
from __future__ import annotations

import asyncio
from typing import Any

from overflow.adapters.kafka.serializer import KafkaMessageSerializer
from overflow.kernel.errors import ChannelUnavailableError
from overflow.kernel.messaging import Message, MessageBus, MessageSerializer
from overflow.observability import get_logger

logger = get_logger(__name__)


def _require_aiokafka() -> Any:
    try:
        import aiokafka  # type: ignore[import-untyped]
        return aiokafka
    except ImportError as exc:
        raise ImportError("Install 'aiokafka' to use the Kafka adapter") from exc


class KafkaMessageBus(MessageBus):
    """aiokafka-backed ``MessageBus``.

    The message key (the aggregate id) becomes the Kafka record key, so every
    event of one question lands in the same partition and keeps its order.
    ``publish`` waits for the broker acknowledgement; a broker failure or
    timeout surfaces as ``ChannelUnavailableError``.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        serializer: MessageSerializer[Any] | None = None,
        **producer_kwargs: Any,
    ) -> None:
        aiokafka = _require_aiokafka()
        producer_kwargs.setdefault("acks", "all")
        producer_kwargs.setdefault("enable_idempotence", True)
        self._producer = aiokafka.AIOKafkaProducer(bootstrap_servers=bootstrap_servers, **producer_kwargs)
        self._serializer = serializer or KafkaMessageSerializer()
        self._errors: tuple[type[BaseException], ...] = (aiokafka.errors.KafkaError, asyncio.TimeoutError)
        self._started = False

    async def start(self) -> None:
        try:
            await self._producer.start()
        except self._errors as exc:
            raise ChannelUnavailableError("Kafka producer could not connect", cause=exc) from exc
        self._started = True

    async def stop(self) -> None:
        await self._producer.stop()
        self._started = False

    async def __aenter__(self) -> "KafkaMessageBus":
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.stop()

    async def publish(self, message: Message[Any]) -> None:
        if not self._started:
            await self.start()
        headers = [(k, v.encode()) for k, v in (message.headers.extra or {}).items()]
        headers.append(("message-id", message.id.encode()))
        if message.headers.correlation_id:
            headers.append(("correlation-id", message.headers.correlation_id.encode()))
        try:
            await self._producer.send_and_wait(
                message.topic,
                value=self._serializer.serialize(message.payload),
                key=message.key.encode() if message.key else None,
                headers=headers,
            )
        except self._errors as exc:
            raise ChannelUnavailableError(
                f"Kafka publish to '{message.topic}' failed",
                topic=message.topic,
                detail={"message_id": message.id, "key": message.key},
                cause=exc,
            ) from exc
        logger.debug("kafka.published", topic=message.topic, message_id=message.id, key=message.key)


__all__ = ["KafkaMessageBus"]
