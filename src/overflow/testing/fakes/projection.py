"""Testing fakes – search projection, projection state and dead letters."""
from __future__ import annotations

import copy

from overflow.application.projection import ProjectionDocument, ProjectionState, ProjectionStateStore
from overflow.kernel.errors import ProjectionUnavailableError
from overflow.kernel.messaging import DeadLetterEntry, DeadLetterStore


class InMemorySearchProjection:
    """Dict-backed search collection.

    ``fail_next(n)`` makes the next *n* calls raise
    ``ProjectionUnavailableError``; ``operations`` records every successful
    write as ``(verb, id)``.
    """

    def __init__(self) -> None:
        self.documents: dict[str, ProjectionDocument] = {}
        self.exists = False
        self.operations: list[tuple[str, str]] = []
        self._failures = 0

    def fail_next(self, times: int = 1) -> None:
        self._failures = times

    def _maybe_fail(self) -> None:
        if self._failures > 0:
            self._failures -= 1
            raise ProjectionUnavailableError("Simulated search outage")

    async def collection_exists(self) -> bool:
        self._maybe_fail()
        return self.exists

    async def create_collection(self) -> None:
        self._maybe_fail()
        self.exists = True

    async def ensure_collection(self) -> bool:
        if await self.collection_exists():
            return False
        await self.create_collection()
        return True

    async def upsert(self, document: ProjectionDocument) -> None:
        self._maybe_fail()
        self.documents[document.id] = document
        self.operations.append(("upsert", document.id))

    async def delete(self, document_id: str) -> None:
        self._maybe_fail()
        self.documents.pop(document_id, None)
        self.operations.append(("delete", document_id))

    async def list_ids(self) -> list[str]:
        self._maybe_fail()
        return sorted(self.documents)


class InMemoryProjectionStateStore(ProjectionStateStore):
    def __init__(self) -> None:
        self.states: dict[str, ProjectionState] = {}

    async def get(self, question_id: str) -> ProjectionState | None:
        state = self.states.get(question_id)
        return copy.deepcopy(state) if state is not None else None

    async def put(self, state: ProjectionState) -> None:
        self.states[state.question_id] = copy.deepcopy(state)


class InMemoryDeadLetterStore(DeadLetterStore):
    def __init__(self) -> None:
        self.entries: list[DeadLetterEntry] = []

    async def push(self, entry: DeadLetterEntry) -> None:
        self.entries.append(entry)

    async def list(self, limit: int = 100) -> list[DeadLetterEntry]:
        return self.entries[:limit]


__all__ = ["InMemoryDeadLetterStore", "InMemoryProjectionStateStore", "InMemorySearchProjection"]
