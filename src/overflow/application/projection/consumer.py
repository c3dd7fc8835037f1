"""ProjectionConsumer – the long-lived loop feeding the IndexProjector."""

from __future__ import annotations

import asyncio
import zlib

from overflow.application.projection.projector import IndexProjector, ProjectionOutcome
from overflow.application.publishing import EventCodec
from overflow.kernel.errors import InfrastructureError, ProjectionUnavailableError, SerializationError
from overflow.kernel.messaging import DeadLetterEntry, DeadLetterStore, Delivery, EventChannel
from overflow.observability import get_logger
from overflow.resilience import RetryPolicy

logger = get_logger(__name__)

_STOP = object()


class ProjectionConsumer:
    """Consume the event channel with per-key order and cross-key parallelism.

    Deliveries are routed to one of *workers* partitions by a stable hash of
    the message key (the question id), so events of one question are applied
    in delivery order while different questions proceed concurrently.

    A delivery is acknowledged once it was applied, skipped or dead-lettered.
    ``ProjectionUnavailableError`` is retried with *retry_policy*; when the
    budget is exhausted, or the payload cannot be decoded, the message goes to
    the dead-letter store.
    """

    def __init__(
        self,
        channel: EventChannel,
        projector: IndexProjector,
        dead_letters: DeadLetterStore,
        *,
        codec: EventCodec | None = None,
        retry_policy: RetryPolicy | None = None,
        workers: int = 4,
        queue_size: int = 100,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._channel = channel
        self._projector = projector
        self._dead_letters = dead_letters
        self._codec = codec or EventCodec()
        self._retry = retry_policy or RetryPolicy(
            max_attempts=5, base_delay=0.5, retry_on=(ProjectionUnavailableError,)
        )
        self._queues: list[asyncio.Queue[object]] = [
            asyncio.Queue(maxsize=queue_size) for _ in range(workers)
        ]
        self.processed = 0

    def partition_for(self, key: str | None) -> int:
        if not key:
            return 0
        return zlib.crc32(key.encode()) % len(self._queues)

    async def run(self) -> None:
        """Consume until the channel is exhausted or the task is cancelled."""
        tasks = [
            asyncio.create_task(self._work(index, queue), name=f"projection-worker-{index}")
            for index, queue in enumerate(self._queues)
        ]
        try:
            async for delivery in self._channel.deliveries():
                await self._queues[self.partition_for(delivery.key)].put(delivery)
            for queue in self._queues:
                await queue.put(_STOP)
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _work(self, index: int, queue: asyncio.Queue[object]) -> None:
        while True:
            item = await queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, Delivery):
                    await self._handle_or_release(index, item)
            finally:
                queue.task_done()

    async def _handle_or_release(self, index: int, delivery: Delivery) -> None:
        try:
            await self.handle(delivery)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "projection.worker_failed",
                worker=index,
                message_id=delivery.message_id,
                error=repr(exc),
            )
            await delivery.nack()

    async def handle(self, delivery: Delivery) -> ProjectionOutcome | None:
        """Process one delivery end to end; returns ``None`` when dead-lettered."""
        try:
            envelope = self._codec.decode(delivery.payload)
        except SerializationError as exc:
            await self._dead_letter(delivery, f"undecodable payload: {exc.message}", 0)
            return None

        try:
            outcome = await self._retry.execute_async(lambda: self._projector.on_event(envelope))
        except InfrastructureError as exc:
            await self._dead_letter(delivery, exc.message, self._retry.max_attempts)
            return None

        await delivery.ack()
        self.processed += 1
        return outcome

    async def _dead_letter(self, delivery: Delivery, reason: str, retries: int) -> None:
        logger.error(
            "projection.dead_lettered",
            message_id=delivery.message_id,
            key=delivery.key,
            reason=reason,
        )
        await self._dead_letters.push(
            DeadLetterEntry(
                message_id=delivery.message_id,
                key=delivery.key,
                payload=delivery.payload,
                headers=dict(delivery.headers),
                reason=reason,
                retry_count=retries,
            )
        )
        await delivery.ack()


__all__ = ["ProjectionConsumer"]
