"""Kernel messaging – message primitives and bus ports."""
from __future__ import annotations

import abc
import dataclasses
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar
from uuid import uuid4

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class MessageHeaders:
    """Envelope metadata propagated with every message."""

    correlation_id: str | None = None
    causation_id: str | None = None
    content_type: str = "application/json"
    schema_version: int = 1
    extra: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class Message(Generic[T]):
    """Transport-agnostic message.

    ``key`` is the ordering key: the broker keeps messages with the same key
    in publish order.  Producers set it to the aggregate id.
    """

    id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    topic: str = ""
    key: str | None = None
    payload: T | None = None
    headers: MessageHeaders = dataclasses.field(default_factory=MessageHeaders)
    occurred_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))


class MessageSerializer(abc.ABC, Generic[T]):
    """Port: serialize / deserialize message payloads."""

    @abc.abstractmethod
    def serialize(self, payload: T) -> bytes: ...

    @abc.abstractmethod
    def deserialize(self, data: bytes) -> T: ...


class MessageBus(abc.ABC):
    """Port: publish messages to a transport (Kafka, in-memory…)."""

    @abc.abstractmethod
    async def publish(self, message: Message[Any]) -> None: ...


__all__ = [
    "Message",
    "MessageBus",
    "MessageHeaders",
    "MessageSerializer",
]
