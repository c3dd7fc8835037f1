"""Kernel messaging – consumer side of the message channel."""
from __future__ import annotations

import abc
import dataclasses
from typing import Any, AsyncIterator, Awaitable, Callable

Ack = Callable[[], Awaitable[None]]


async def _noop() -> None:
    return None


@dataclasses.dataclass
class Delivery:
    """One at-least-once delivery of a message.

    The consumer must call :meth:`ack` once the message is applied, skipped or
    dead-lettered.  A delivery that is never acknowledged is redelivered.
    """

    message_id: str
    key: str | None
    payload: bytes
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    attempt: int = 1
    _ack: Ack = dataclasses.field(default=_noop, repr=False)
    _nack: Ack = dataclasses.field(default=_noop, repr=False)
    acked: bool = False

    async def ack(self) -> None:
        if self.acked:
            return
        self.acked = True
        await self._ack()

    async def nack(self) -> None:
        """Hand the message back to the channel for redelivery."""
        await self._nack()


class EventChannel(abc.ABC):
    """Port: subscribe to the topic carrying the domain events."""

    @abc.abstractmethod
    async def start(self) -> None: ...

    @abc.abstractmethod
    async def stop(self) -> None: ...

    @abc.abstractmethod
    def deliveries(self) -> AsyncIterator[Delivery]:
        """Yield deliveries until the channel is stopped."""

    async def __aenter__(self) -> "EventChannel":
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.stop()


__all__ = ["Ack", "Delivery", "EventChannel"]
