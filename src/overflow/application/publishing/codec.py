"""JSON wire format of domain-event envelopes.

Wire shape::

    {
      "event_id": "...", "event_type": "AnswerCountUpdated",
      "occurred_at": "2026-01-01T12:00:00+00:00",
      "aggregate_id": "q-1", "aggregate_type": "Question", "sequence": 4,
      "schema_version": 1, "correlation_id": null,
      "data": {"question_id": "q-1", "answer_count": 2}
    }
"""

from __future__ import annotations

import dataclasses
import json
import typing
from datetime import datetime
from typing import Any

from overflow.domain.events import EVENT_TYPES
from overflow.kernel.ddd import DomainEvent, DomainEventEnvelope
from overflow.kernel.errors import SerializationError

_BASE_FIELDS = frozenset(f.name for f in dataclasses.fields(DomainEvent))


@dataclasses.dataclass(frozen=True, kw_only=True)
class UnrecognizedEvent(DomainEvent):
    """Placeholder for an event type this consumer does not know."""

    type_name: str
    data: dict[str, Any] = dataclasses.field(default_factory=dict)

    @property
    def event_type(self) -> str:
        return self.type_name


class EventCodec:
    """Encode envelopes to bytes and back.

    *registry* maps event type names to event classes; unknown names decode to
    :class:`UnrecognizedEvent` rather than failing.
    """

    def __init__(self, registry: dict[str, type[DomainEvent]] | None = None) -> None:
        self._registry = dict(registry if registry is not None else EVENT_TYPES)

    def encode(self, envelope: DomainEventEnvelope) -> bytes:
        event = envelope.event
        data = {
            f.name: _to_json(getattr(event, f.name))
            for f in dataclasses.fields(event)
            if f.name not in _BASE_FIELDS
        }
        body = {
            "event_id": event.event_id,
            "event_type": event.event_type,
            "occurred_at": event.occurred_at.isoformat(),
            "aggregate_id": envelope.aggregate_id,
            "aggregate_type": envelope.aggregate_type,
            "sequence": envelope.sequence,
            "schema_version": envelope.schema_version,
            "correlation_id": envelope.correlation_id,
            "data": data,
        }
        return json.dumps(body, ensure_ascii=False).encode()

    def decode(self, raw: bytes) -> DomainEventEnvelope:
        try:
            body = json.loads(raw)
            event_type = body["event_type"]
            base = {
                "event_id": body["event_id"],
                "occurred_at": datetime.fromisoformat(body["occurred_at"]),
            }
            data = body.get("data") or {}
            event_cls = self._registry.get(event_type)
            if event_cls is None:
                event: DomainEvent = UnrecognizedEvent(type_name=event_type, data=data, **base)
            else:
                event = event_cls(**base, **self._from_json(event_cls, data))
            return DomainEventEnvelope(
                event=event,
                aggregate_id=body["aggregate_id"],
                aggregate_type=body.get("aggregate_type", ""),
                sequence=int(body["sequence"]),
                correlation_id=body.get("correlation_id"),
                schema_version=int(body.get("schema_version", 1)),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise SerializationError(
                f"Cannot decode event envelope: {exc}", payload_type="DomainEventEnvelope", cause=exc
            ) from exc

    @staticmethod
    def _from_json(event_cls: type[DomainEvent], data: dict[str, Any]) -> dict[str, Any]:
        hints = typing.get_type_hints(event_cls)
        values: dict[str, Any] = {}
        for f in dataclasses.fields(event_cls):
            if f.name in _BASE_FIELDS or f.name not in data:
                continue
            hint = hints.get(f.name)
            value = data[f.name]
            if hint is datetime:
                value = datetime.fromisoformat(value)
            elif typing.get_origin(hint) is tuple:
                value = tuple(value)
            values[f.name] = value
        return values


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, tuple):
        return list(value)
    return value


__all__ = ["EventCodec", "UnrecognizedEvent"]
