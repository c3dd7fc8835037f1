"""IndexProjector – applies domain events to the search projection.

Deliveries are at-least-once and may arrive out of order across events, so
every field group carries the sequence of the event that last wrote it:

* a newer sequence is applied;
* the same sequence is a duplicate and changes nothing;
* an older sequence is stale and is discarded.

``QuestionDeleted`` is terminal: it is always applied and leaves a tombstone
that turns every later event for that question into a stale one.
"""

from __future__ import annotations

import asyncio
import weakref
from enum import Enum

from overflow.application.projection.document import FieldGroup, ProjectionDocument
from overflow.application.projection.ports import SearchProjection
from overflow.application.projection.state import ProjectionState, ProjectionStateStore
from overflow.domain import (
    AnswerAccepted,
    AnswerCountUpdated,
    QuestionCreated,
    QuestionDeleted,
    QuestionUpdated,
)
from overflow.kernel.ddd import DomainEventEnvelope
from overflow.kernel.time import to_unix_seconds
from overflow.observability import get_logger

logger = get_logger(__name__)

_GROUP_FIELDS: dict[FieldGroup, tuple[str, ...]] = {
    FieldGroup.CONTENT: ("title", "content", "tags"),
    FieldGroup.ANSWERS: ("answer_count",),
    FieldGroup.ACCEPTED: ("has_accepted_answer",),
}


class ProjectionOutcome(str, Enum):
    APPLIED = "applied"
    DEFERRED = "deferred"  # recorded, waiting for the create
    SKIPPED_DUPLICATE = "skipped_duplicate"
    SKIPPED_STALE = "skipped_stale"
    SKIPPED_UNKNOWN = "skipped_unknown"

    @property
    def skipped(self) -> bool:
        return self.value.startswith("skipped")


class IndexProjector:
    """Idempotent, version-gated application of events to the projection.

    The state of a question is written only after the search engine accepted
    the change; a ``ProjectionUnavailableError`` therefore leaves both sides
    untouched and the same delivery can simply be retried.

    Event application, :meth:`restore` and :meth:`evict` hold a per-question
    lock across their read-modify-write of the state.
    """

    def __init__(self, projection: SearchProjection, states: ProjectionStateStore) -> None:
        self._projection = projection
        self._states = states
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, question_id: str) -> asyncio.Lock:
        lock = self._locks.get(question_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[question_id] = lock
        return lock

    async def on_event(self, envelope: DomainEventEnvelope) -> ProjectionOutcome:
        async with self._lock_for(envelope.aggregate_id):
            return await self._apply(envelope)

    async def _apply(self, envelope: DomainEventEnvelope) -> ProjectionOutcome:
        event = envelope.event
        question_id = envelope.aggregate_id
        state = await self._states.get(question_id) or ProjectionState(question_id)

        if isinstance(event, QuestionDeleted):
            outcome = await self._delete(state)
        elif state.deleted:
            outcome = ProjectionOutcome.SKIPPED_STALE
        elif isinstance(event, QuestionCreated):
            outcome = await self._create(state, envelope.sequence, event)
        elif isinstance(event, QuestionUpdated):
            outcome = await self._update(
                state,
                FieldGroup.CONTENT,
                envelope.sequence,
                title=event.title,
                content=event.content,
                tags=list(event.tags),
            )
        elif isinstance(event, AnswerCountUpdated):
            outcome = await self._update(
                state, FieldGroup.ANSWERS, envelope.sequence, answer_count=event.answer_count
            )
        elif isinstance(event, AnswerAccepted):
            outcome = await self._update(
                state, FieldGroup.ACCEPTED, envelope.sequence, has_accepted_answer=True
            )
        else:
            logger.warning(
                "projection.unknown_event",
                event_type=envelope.event_type,
                question_id=question_id,
                event_id=envelope.event_id,
            )
            return ProjectionOutcome.SKIPPED_UNKNOWN

        log = logger.info if outcome is ProjectionOutcome.APPLIED else logger.debug
        log(
            "projection.event",
            outcome=outcome.value,
            event_type=envelope.event_type,
            question_id=question_id,
            sequence=envelope.sequence,
        )
        return outcome

    async def _delete(self, state: ProjectionState) -> ProjectionOutcome:
        await self._projection.delete(state.question_id)
        if state.deleted:
            return ProjectionOutcome.SKIPPED_DUPLICATE
        await self._states.put(ProjectionState.tombstone(state.question_id))
        return ProjectionOutcome.APPLIED

    async def _create(
        self, state: ProjectionState, sequence: int, event: QuestionCreated
    ) -> ProjectionOutcome:
        if state.present:
            return ProjectionOutcome.SKIPPED_DUPLICATE
        # an update that overtook the create already holds newer content
        if state.version_of(FieldGroup.CONTENT) < sequence:
            state.record(
                FieldGroup.CONTENT,
                sequence,
                title=event.title,
                content=event.content,
                tags=list(event.tags),
            )
        state.values["created_at"] = to_unix_seconds(event.created_at)
        await self._projection.upsert(state.document())
        state.present = True
        await self._states.put(state)
        return ProjectionOutcome.APPLIED

    async def _update(
        self, state: ProjectionState, group: FieldGroup, sequence: int, **values: object
    ) -> ProjectionOutcome:
        applied = state.version_of(group)
        if sequence == applied:
            return ProjectionOutcome.SKIPPED_DUPLICATE
        if sequence < applied:
            return ProjectionOutcome.SKIPPED_STALE
        state.record(group, sequence, **values)
        if not state.present:
            await self._states.put(state)
            return ProjectionOutcome.DEFERRED
        await self._projection.upsert(state.document())
        await self._states.put(state)
        return ProjectionOutcome.APPLIED

    # ------------------------------------------------------------------
    # Used by reconciliation
    # ------------------------------------------------------------------

    async def restore(self, document: ProjectionDocument, version: int) -> bool:
        """Write a document rebuilt from the store at aggregate *version*.

        Skipped when the id is tombstoned.  Field groups the projector has
        seen at a newer sequence keep their newer values.  Returns ``True``
        when the document was written.
        """
        async with self._lock_for(document.id):
            return await self._restore(document, version)

    async def _restore(self, document: ProjectionDocument, version: int) -> bool:
        current = await self._states.get(document.id)
        if current is not None and current.deleted:
            return False
        state = ProjectionState.from_document(document, version)
        if current is not None:
            for group in FieldGroup:
                if current.version_of(group) > version:
                    state.versions[group.value] = current.version_of(group)
                    state.values.update(
                        {k: current.values[k] for k in _GROUP_FIELDS[group] if k in current.values}
                    )
        await self._projection.upsert(state.document())
        await self._states.put(state)
        return True

    async def evict(self, question_id: str) -> None:
        """Remove an orphaned document and tombstone its id."""
        async with self._lock_for(question_id):
            await self._projection.delete(question_id)
            await self._states.put(ProjectionState.tombstone(question_id))


__all__ = ["IndexProjector", "ProjectionOutcome"]
