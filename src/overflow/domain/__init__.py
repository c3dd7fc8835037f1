"""Question/Answer aggregate, its domain events and the store ports."""
from overflow.domain.events import (
    EVENT_TYPES,
    AnswerAccepted,
    AnswerCountUpdated,
    QuestionCreated,
    QuestionDeleted,
    QuestionUpdated,
)
from overflow.domain.ports import QuestionRepository, TagValidator
from overflow.domain.question import Answer, Question
from overflow.domain.tags import StaticTagValidator

__all__ = [
    "EVENT_TYPES",
    "Answer",
    "AnswerAccepted",
    "AnswerCountUpdated",
    "Question",
    "QuestionCreated",
    "QuestionDeleted",
    "QuestionRepository",
    "QuestionUpdated",
    "StaticTagValidator",
    "TagValidator",
]
