"""Event publishing – codec, publisher and transactional-outbox relay."""
from overflow.application.publishing.codec import EventCodec, UnrecognizedEvent
from overflow.application.publishing.publisher import EventPublisher
from overflow.application.publishing.relay import OutboxRelay

__all__ = ["EventCodec", "EventPublisher", "OutboxRelay", "UnrecognizedEvent"]
