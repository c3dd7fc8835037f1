"""Kernel messaging – dead-letter port."""
from __future__ import annotations

import abc
import dataclasses
from datetime import UTC, datetime
from uuid import uuid4


@dataclasses.dataclass
class DeadLetterEntry:
    """A message that could not be processed after all retries."""

    id: str = dataclasses.field(default_factory=lambda: str(uuid4()))
    message_id: str = ""
    key: str | None = None
    payload: bytes = b""
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    reason: str = ""
    failed_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    retry_count: int = 0


class DeadLetterStore(abc.ABC):
    """Port: persistence for dead-lettered messages."""

    @abc.abstractmethod
    async def push(self, entry: DeadLetterEntry) -> None:
        """Persist a failed message with its failure reason."""

    @abc.abstractmethod
    async def list(self, limit: int = 100) -> list[DeadLetterEntry]:
        """Return at most *limit* dead-letter entries (oldest first)."""


__all__ = ["DeadLetterEntry", "DeadLetterStore"]
