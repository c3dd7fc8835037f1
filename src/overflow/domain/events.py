"""Domain events raised by the Question aggregate.

Each event carries only what the search projection needs to reproduce the
fields it owns; view counts and answer bodies never leave the store.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime

from overflow.kernel.ddd import DomainEvent


@dataclasses.dataclass(frozen=True, kw_only=True)
class QuestionCreated(DomainEvent):
    question_id: str
    title: str
    content: str
    tags: tuple[str, ...]
    created_at: datetime


@dataclasses.dataclass(frozen=True, kw_only=True)
class QuestionUpdated(DomainEvent):
    question_id: str
    title: str
    content: str
    tags: tuple[str, ...]


@dataclasses.dataclass(frozen=True, kw_only=True)
class QuestionDeleted(DomainEvent):
    question_id: str


@dataclasses.dataclass(frozen=True, kw_only=True)
class AnswerCountUpdated(DomainEvent):
    question_id: str
    answer_count: int


@dataclasses.dataclass(frozen=True, kw_only=True)
class AnswerAccepted(DomainEvent):
    question_id: str


EVENT_TYPES: dict[str, type[DomainEvent]] = {
    cls.__name__: cls
    for cls in (
        QuestionCreated,
        QuestionUpdated,
        QuestionDeleted,
        AnswerCountUpdated,
        AnswerAccepted,
    )
}

__all__ = [
    "EVENT_TYPES",
    "AnswerAccepted",
    "AnswerCountUpdated",
    "QuestionCreated",
    "QuestionDeleted",
    "QuestionUpdated",
]
