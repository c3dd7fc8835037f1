"""Kafka adapter – KafkaEventChannel."""
from __future__ import annotations

from typing import Any, AsyncIterator

from overflow.kernel.messaging import Delivery, EventChannel
from overflow.observability import get_logger

logger = get_logger(__name__)


def _require_aiokafka() -> Any:
    try:
        import aiokafka  # type: ignore[import-untyped]
        return aiokafka
    except ImportError as exc:
        raise ImportError("Install 'aiokafka' to use the Kafka adapter") from exc


class ContiguousOffsetTracker:
    """Offsets of one partition that are in flight, and the next safe commit.

    Deliveries are acknowledged out of order by the worker pool; only the
    offset after the longest acknowledged prefix may be committed.
    """

    def __init__(self) -> None:
        self._pending: set[int] = set()
        self._acked: set[int] = set()
        self.committed: int | None = None

    def track(self, offset: int) -> None:
        if self.committed is not None and offset < self.committed:
            return
        self._pending.add(offset)

    def ack(self, offset: int) -> int | None:
        """Mark *offset* done; returns the new commit position when it advanced."""
        if offset not in self._pending:
            return None
        self._acked.add(offset)
        advanced: int | None = None
        while self._pending:
            lowest = min(self._pending)
            if lowest not in self._acked:
                break
            self._pending.discard(lowest)
            self._acked.discard(lowest)
            advanced = lowest + 1
        if advanced is not None:
            self.committed = advanced
        return advanced

    def reset_from(self, offset: int) -> None:
        """Forget everything at or after *offset*; it will be delivered again."""
        self._pending = {o for o in self._pending if o < offset}
        self._acked = {o for o in self._acked if o < offset}

    @property
    def in_flight(self) -> int:
        return len(self._pending)


class KafkaEventChannel(EventChannel):
    """aiokafka consumer with manual, contiguous offset commits.

    Auto-commit is disabled: an offset is committed only once it and every
    offset before it in the partition were acknowledged, so a crash or a
    ``nack`` leads to redelivery rather than loss.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
        group_id: str,
        **consumer_kwargs: Any,
    ) -> None:
        aiokafka = _require_aiokafka()
        consumer_kwargs.setdefault("auto_offset_reset", "earliest")
        self._consumer = aiokafka.AIOKafkaConsumer(
            topic,
            bootstrap_servers=bootstrap_servers,
            group_id=group_id,
            enable_auto_commit=False,
            **consumer_kwargs,
        )
        self._topic_partition = aiokafka.TopicPartition
        self._trackers: dict[tuple[str, int], ContiguousOffsetTracker] = {}

    async def start(self) -> None:
        await self._consumer.start()

    async def stop(self) -> None:
        await self._consumer.stop()

    def tracker(self, topic: str, partition: int) -> ContiguousOffsetTracker:
        return self._trackers.setdefault((topic, partition), ContiguousOffsetTracker())

    async def deliveries(self) -> AsyncIterator[Delivery]:
        async for record in self._consumer:
            self.tracker(record.topic, record.partition).track(record.offset)
            yield self._to_delivery(record)

    def _to_delivery(self, record: Any) -> Delivery:
        headers = {k: v.decode() for k, v in (record.headers or ())}
        topic, partition, offset = record.topic, record.partition, record.offset

        async def ack() -> None:
            await self._commit(topic, partition, offset)

        async def nack() -> None:
            self.tracker(topic, partition).reset_from(offset)
            self._consumer.seek(self._topic_partition(topic, partition), offset)
            logger.warning("kafka.redeliver", topic=topic, partition=partition, offset=offset)

        return Delivery(
            message_id=headers.get("message-id") or f"{topic}:{partition}:{offset}",
            key=record.key.decode() if record.key else None,
            payload=record.value,
            headers=headers,
            _ack=ack,
            _nack=nack,
        )

    async def _commit(self, topic: str, partition: int, offset: int) -> None:
        position = self.tracker(topic, partition).ack(offset)
        if position is None:
            return
        await self._consumer.commit({self._topic_partition(topic, partition): position})
        logger.debug("kafka.committed", topic=topic, partition=partition, offset=position)


__all__ = ["ContiguousOffsetTracker", "KafkaEventChannel"]
