"""Kernel messaging – messages, outbox, channel and dead-letter ports."""
from overflow.kernel.messaging.channel import Delivery, EventChannel
from overflow.kernel.messaging.dead_letter import DeadLetterEntry, DeadLetterStore
from overflow.kernel.messaging.message import (
    Message,
    MessageBus,
    MessageHeaders,
    MessageSerializer,
)
from overflow.kernel.messaging.outbox import (
    OutboxRecord,
    OutboxRepository,
    OutboxStatus,
)

__all__ = [
    "DeadLetterEntry",
    "DeadLetterStore",
    "Delivery",
    "EventChannel",
    "Message",
    "MessageBus",
    "MessageHeaders",
    "MessageSerializer",
    "OutboxRecord",
    "OutboxRepository",
    "OutboxStatus",
]
