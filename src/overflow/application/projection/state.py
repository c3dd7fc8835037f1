"""Per-question bookkeeping of what the projection has applied."""

from __future__ import annotations

import abc
import dataclasses
from typing import Any

from overflow.application.projection.document import FieldGroup, ProjectionDocument


@dataclasses.dataclass
class ProjectionState:
    """Applied versions and field values for one question id.

    ``present`` means the document exists in the search collection.  Group
    updates received before the create are kept in ``values`` and merged into
    the document when the create lands.  ``deleted`` is a tombstone: once set,
    nothing but another delete is applied for this id.
    """

    question_id: str
    present: bool = False
    deleted: bool = False
    versions: dict[str, int] = dataclasses.field(default_factory=dict)
    values: dict[str, Any] = dataclasses.field(default_factory=dict)

    def version_of(self, group: FieldGroup) -> int:
        return self.versions.get(group.value, 0)

    def record(self, group: FieldGroup, sequence: int, **values: Any) -> None:
        self.versions[group.value] = sequence
        self.values.update(values)

    def document(self) -> ProjectionDocument:
        v = self.values
        return ProjectionDocument(
            id=self.question_id,
            title=v["title"],
            content=v["content"],
            tags=tuple(v.get("tags", ())),
            created_at=int(v["created_at"]),
            answer_count=int(v.get("answer_count", 0)),
            has_accepted_answer=bool(v.get("has_accepted_answer", False)),
        )

    @classmethod
    def from_document(cls, document: ProjectionDocument, version: int) -> "ProjectionState":
        """State of a document rebuilt from the store at aggregate *version*."""
        return cls(
            question_id=document.id,
            present=True,
            versions={group.value: version for group in FieldGroup},
            values={
                "title": document.title,
                "content": document.content,
                "tags": list(document.tags),
                "created_at": document.created_at,
                "answer_count": document.answer_count,
                "has_accepted_answer": document.has_accepted_answer,
            },
        )

    @classmethod
    def tombstone(cls, question_id: str) -> "ProjectionState":
        return cls(question_id=question_id, deleted=True)


class ProjectionStateStore(abc.ABC):
    """Port: durable storage of :class:`ProjectionState` records."""

    @abc.abstractmethod
    async def get(self, question_id: str) -> ProjectionState | None: ...

    @abc.abstractmethod
    async def put(self, state: ProjectionState) -> None: ...


__all__ = ["ProjectionState", "ProjectionStateStore"]
