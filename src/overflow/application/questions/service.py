"""QuestionService – transactional operations on Question aggregates."""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence, TypeVar

from overflow.application.publishing import OutboxRelay
from overflow.application.questions.results import Committed
from overflow.domain import Answer, Question, TagValidator
from overflow.kernel.ddd import DomainEventEnvelope, UnitOfWork
from overflow.kernel.errors import ChannelUnavailableError, NotFoundError, ValidationError
from overflow.kernel.security import Caller, require_caller
from overflow.kernel.time import Clock, SystemClock
from overflow.observability import get_logger

T = TypeVar("T")
logger = get_logger(__name__)


class QuestionService:
    """Use cases of the aggregate store.

    Every mutation loads the aggregate, applies the change, and commits it
    together with the outbox records of the events it raised.  After the
    commit the relay publishes those records; a publish failure leaves the
    mutation committed and is reported through ``Committed.sync_pending``.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        tag_validator: TagValidator,
        relay: OutboxRelay,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._tags = tag_validator
        self._relay = relay
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def create_question(
        self,
        title: str,
        content: str,
        tags: Sequence[str],
        caller: Caller | None,
    ) -> Committed[Question]:
        asker = require_caller(caller)
        await self._ensure_tags_valid(tags)
        question = Question.ask(
            title=title, content=content, tags=tags, asker=asker, at=self._clock.now()
        )
        async with self._uow_factory() as uow:
            events = question.pull_events()
            await uow.questions.add(question)
            await self._relay.stage(uow, events)
        logger.info("question.created", question_id=question.id, tags=list(question.tags))
        return await self._publish(question.id, question, events)

    async def update_question(
        self,
        question_id: str,
        caller: Caller | None,
        title: str,
        content: str,
        tags: Sequence[str],
    ) -> Committed[None]:
        editor = require_caller(caller)
        async with self._uow_factory() as uow:
            question = await uow.questions.get_or_raise(question_id)
            question.ensure_asked_by(editor)
            await self._ensure_tags_valid(tags)
            question.edit(editor, title=title, content=content, tags=tags, at=self._clock.now())
            events = question.pull_events()
            await uow.questions.save(question)
            await self._relay.stage(uow, events)
        return await self._publish(question_id, None, events)

    async def delete_question(self, question_id: str, caller: Caller | None) -> Committed[None]:
        remover = require_caller(caller)
        async with self._uow_factory() as uow:
            question = await uow.questions.get_or_raise(question_id)
            question.remove(remover)
            events = question.pull_events()
            await uow.questions.remove(question)
            await self._relay.stage(uow, events)
        logger.info("question.deleted", question_id=question_id, answers=len(question.answers))
        return await self._publish(question_id, None, events)

    async def get_question(self, question_id: str) -> Question | None:
        """Load a question; every call counts one view, even if the caller fails later."""
        async with self._uow_factory() as uow:
            if not await uow.questions.increment_view_count(question_id):
                return None
            return await uow.questions.get(question_id)

    async def list_questions(self, tag: str | None = None) -> list[Question]:
        async with self._uow_factory() as uow:
            return await uow.questions.list_recent(tag or None)

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    async def add_answer(
        self, question_id: str, caller: Caller | None, content: str
    ) -> Committed[Answer]:
        author = require_caller(caller)
        async with self._uow_factory() as uow:
            question = await uow.questions.get_or_raise(question_id)
            answer = question.add_answer(author, content, at=self._clock.now())
            events = question.pull_events()
            await uow.questions.save(question)
            await self._relay.stage(uow, events)
        return await self._publish(question_id, answer, events)

    async def update_answer(self, answer_id: str, content: str) -> Committed[None]:
        async with self._uow_factory() as uow:
            question_id = await uow.questions.find_question_id_for_answer(answer_id)
            if question_id is None:
                raise NotFoundError("Answer", answer_id)
            question = await uow.questions.get_or_raise(question_id)
            question.edit_answer(answer_id, content, at=self._clock.now())
            await uow.questions.save(question)
        return Committed(None)

    async def delete_answer(self, question_id: str, answer_id: str) -> Committed[None]:
        async with self._uow_factory() as uow:
            question = await self._load_with_answer(uow, question_id, answer_id)
            question.delete_answer(answer_id)
            events = question.pull_events()
            await uow.questions.save(question)
            await self._relay.stage(uow, events)
        return await self._publish(question_id, None, events)

    async def accept_answer(self, question_id: str, answer_id: str) -> Committed[None]:
        async with self._uow_factory() as uow:
            question = await self._load_with_answer(uow, question_id, answer_id)
            question.accept_answer(answer_id)
            events = question.pull_events()
            await uow.questions.save(question)
            await self._relay.stage(uow, events)
        logger.info("answer.accepted", question_id=question_id, answer_id=answer_id)
        return await self._publish(question_id, None, events)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _load_with_answer(uow: UnitOfWork, question_id: str, answer_id: str) -> Question:
        question = await uow.questions.get_or_raise(question_id)
        if question.find_answer(answer_id) is None:
            if await uow.questions.find_question_id_for_answer(answer_id) is None:
                raise NotFoundError("Answer", answer_id)
        return question

    async def _ensure_tags_valid(self, tags: Sequence[str]) -> None:
        if not await self._tags.are_tags_valid(list(tags)):
            raise ValidationError("Invalid Tags", errors=[{"field": "tags", "message": "unknown tag"}])

    async def _publish(
        self, aggregate_id: str, value: T, events: list[DomainEventEnvelope]
    ) -> Committed[T]:
        try:
            # the publish outlives a cancelled caller; the commit already stands
            await asyncio.shield(self._relay.flush(aggregate_id))
        except ChannelUnavailableError as exc:
            logger.warning(
                "question.sync_pending",
                question_id=aggregate_id,
                events=[e.event_type for e in events],
                error=exc.to_dict(),
            )
            return Committed(value, tuple(events), sync_pending=True)
        except Exception:  # noqa: BLE001
            # records stay in the outbox for dispatch_pending()
            logger.exception(
                "question.sync_failed",
                question_id=aggregate_id,
                events=[e.event_type for e in events],
            )
            return Committed(value, tuple(events), sync_pending=True)
        return Committed(value, tuple(events))


__all__ = ["QuestionService"]
