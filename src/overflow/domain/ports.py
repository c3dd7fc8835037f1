"""Ports of the aggregate store and its collaborators."""

from __future__ import annotations

import abc
from typing import Protocol, Sequence

from overflow.domain.question import Question
from overflow.kernel.errors import NotFoundError


class QuestionRepository(abc.ABC):
    """Port: persistence for Question aggregates (answers included).

    ``save`` and ``remove`` compare ``question.persisted_version`` with the
    stored version and raise ``ConflictError`` when another writer committed in
    between.  Implementations live in ``adapters/sqlalchemy`` and
    ``testing/fakes``.
    """

    @abc.abstractmethod
    async def get(self, question_id: str) -> Question | None: ...

    async def get_or_raise(self, question_id: str) -> Question:
        question = await self.get(question_id)
        if question is None:
            raise NotFoundError("Question", question_id)
        return question

    @abc.abstractmethod
    async def find_question_id_for_answer(self, answer_id: str) -> str | None: ...

    @abc.abstractmethod
    async def add(self, question: Question) -> None: ...

    @abc.abstractmethod
    async def save(self, question: Question) -> None: ...

    @abc.abstractmethod
    async def remove(self, question: Question) -> None:
        """Delete the question and, by composition, all of its answers."""

    @abc.abstractmethod
    async def list_recent(self, tag: str | None = None) -> list[Question]:
        """Questions ordered by ``created_at`` descending, optionally by tag."""

    @abc.abstractmethod
    async def list_ids(self) -> list[str]: ...

    @abc.abstractmethod
    async def increment_view_count(self, question_id: str) -> bool:
        """Atomically add one view; ``False`` when the question does not exist."""


class TagValidator(Protocol):
    """Port: black-box check of tag slugs against the tag vocabulary."""

    async def are_tags_valid(self, tags: Sequence[str]) -> bool: ...


__all__ = ["QuestionRepository", "TagValidator"]
