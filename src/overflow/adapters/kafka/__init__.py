"""Kafka adapter – event bus and event channel on aiokafka."""
from overflow.adapters.kafka.consumer import ContiguousOffsetTracker, KafkaEventChannel
from overflow.adapters.kafka.producer import KafkaMessageBus
from overflow.adapters.kafka.serializer import KafkaMessageSerializer

__all__ = [
    "ContiguousOffsetTracker",
    "KafkaEventChannel",
    "KafkaMessageBus",
    "KafkaMessageSerializer",
]
