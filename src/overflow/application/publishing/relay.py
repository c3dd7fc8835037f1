"""OutboxRelay – moves committed outbox records onto the message channel."""

from __future__ import annotations

import asyncio
import weakref
from typing import Callable

from overflow.application.publishing.publisher import EventPublisher
from overflow.kernel.ddd import DomainEventEnvelope, UnitOfWork
from overflow.kernel.errors import ChannelUnavailableError
from overflow.observability import get_logger

logger = get_logger(__name__)


class OutboxRelay:
    """Publish pending outbox records, one aggregate at a time, in sequence order.

    Records of a single aggregate are published under a per-aggregate lock and
    the relay stops at the first failure, so a later sequence never reaches
    the channel before an earlier one.  Different aggregates do not share a
    lock.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        publisher: EventPublisher,
        *,
        batch_size: int = 100,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._batch_size = batch_size
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, aggregate_id: str) -> asyncio.Lock:
        lock = self._locks.get(aggregate_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[aggregate_id] = lock
        return lock

    async def stage(self, uow: UnitOfWork, envelopes: list[DomainEventEnvelope]) -> None:
        """Write *envelopes* to the outbox of the open unit of work."""
        for envelope in envelopes:
            await uow.outbox.save(self._publisher.to_outbox_record(envelope))

    async def flush(self, aggregate_id: str) -> int:
        """Publish every pending record of *aggregate_id*.

        Returns the number of records dispatched.  Raises
        ``ChannelUnavailableError`` when a record could not be published; the
        failure is recorded on the record, which stays pending.
        """
        lock = self._lock_for(aggregate_id)
        async with lock:
            failure: ChannelUnavailableError | None = None
            dispatched = 0
            async with self._uow_factory() as uow:
                records = await uow.outbox.get_pending(self._batch_size, aggregate_id=aggregate_id)
                for record in records:
                    try:
                        await self._publisher.publish_record(record)
                    except ChannelUnavailableError as exc:
                        logger.error(
                            "outbox.dispatch_failed",
                            record_id=record.id,
                            aggregate_id=aggregate_id,
                            sequence=record.sequence,
                            error=exc.message,
                        )
                        await uow.outbox.record_failure(record.id, exc.message)
                        failure = exc
                        break
                    await uow.outbox.mark_dispatched(record.id)
                    dispatched += 1
            if failure is not None:
                raise failure
            return dispatched

    async def dispatch_pending(self) -> int:
        """Sweep all aggregates with pending records; returns the dispatched count."""
        async with self._uow_factory() as uow:
            pending = await uow.outbox.get_pending(self._batch_size)
        aggregate_ids = list(dict.fromkeys(record.aggregate_id for record in pending))
        dispatched = 0
        for aggregate_id in aggregate_ids:
            try:
                dispatched += await self.flush(aggregate_id)
            except ChannelUnavailableError:
                continue
        if aggregate_ids:
            logger.info("outbox.swept", aggregates=len(aggregate_ids), dispatched=dispatched)
        return dispatched

    async def run(self, stop: asyncio.Event, interval_seconds: float) -> None:
        """Sweep every *interval_seconds* until *stop* is set."""
        while not stop.is_set():
            try:
                await self.dispatch_pending()
            except Exception as exc:  # noqa: BLE001
                logger.exception("outbox.sweep_failed", error=repr(exc))
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue


__all__ = ["OutboxRelay"]
