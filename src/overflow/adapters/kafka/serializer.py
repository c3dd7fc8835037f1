"""Kafka adapter – KafkaMessageSerializer."""
from __future__ import annotations

import json
from typing import Any

from overflow.kernel.errors import SerializationError
from overflow.kernel.messaging import MessageSerializer


class KafkaMessageSerializer(MessageSerializer[Any]):
    """JSON serialiser for Kafka payloads; already-encoded bytes pass through."""

    def serialize(self, payload: Any) -> bytes:
        if isinstance(payload, bytes):
            return payload
        return json.dumps(payload, default=str).encode()

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except ValueError as exc:
            raise SerializationError("Kafka payload is not valid JSON", cause=exc) from exc


__all__ = ["KafkaMessageSerializer"]
