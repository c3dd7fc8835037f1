"""The denormalised search document and the collection schema."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any

from overflow.domain import Question
from overflow.kernel.time import to_unix_seconds

QUESTIONS_SCHEMA: dict[str, Any] = {
    "name": "questions",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "title", "type": "string"},
        {"name": "content", "type": "string"},
        {"name": "tag", "type": "string[]"},
        {"name": "createdAt", "type": "int64"},
        {"name": "answerCount", "type": "int32"},
        {"name": "hasAcceptedAnswer", "type": "bool"},
    ],
    "default_sorting_field": "createdAt",
}


class FieldGroup(str, Enum):
    """Document fields that are versioned together."""

    CONTENT = "content"  # title, content, tags
    ANSWERS = "answers"  # answer count
    ACCEPTED = "accepted"  # has-accepted-answer


@dataclasses.dataclass(frozen=True)
class ProjectionDocument:
    id: str
    title: str
    content: str
    tags: tuple[str, ...]
    created_at: int
    answer_count: int = 0
    has_accepted_answer: bool = False

    def to_search(self) -> dict[str, Any]:
        """Field names as declared in :data:`QUESTIONS_SCHEMA`."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tag": list(self.tags),
            "createdAt": self.created_at,
            "answerCount": self.answer_count,
            "hasAcceptedAnswer": self.has_accepted_answer,
        }

    @classmethod
    def from_search(cls, data: dict[str, Any]) -> "ProjectionDocument":
        return cls(
            id=data["id"],
            title=data["title"],
            content=data["content"],
            tags=tuple(data.get("tag", ())),
            created_at=int(data["createdAt"]),
            answer_count=int(data.get("answerCount", 0)),
            has_accepted_answer=bool(data.get("hasAcceptedAnswer", False)),
        )


def document_from_question(question: Question) -> ProjectionDocument:
    """Derive the full document from the canonical aggregate."""
    return ProjectionDocument(
        id=question.id,
        title=question.title,
        content=question.content,
        tags=question.tags,
        created_at=to_unix_seconds(question.created_at),
        answer_count=question.answer_count,
        has_accepted_answer=question.has_accepted_answer,
    )


__all__ = ["QUESTIONS_SCHEMA", "FieldGroup", "ProjectionDocument", "document_from_question"]
