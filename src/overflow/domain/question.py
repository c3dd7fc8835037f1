"""Question aggregate and its Answer entities.

A Question owns its answers by composition: answers are created, edited,
accepted and deleted through the question so that the answer count and the
accepted-answer flag can never drift from the answer list.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from overflow.domain.events import (
    AnswerAccepted,
    AnswerCountUpdated,
    QuestionCreated,
    QuestionDeleted,
    QuestionUpdated,
)
from overflow.kernel.ddd import AggregateRoot, Entity, Invariant
from overflow.kernel.errors import ConflictError, ForbiddenError, ValidationError
from overflow.kernel.security import Caller
from overflow.kernel.types import new_id


def _require_text(field: str, value: str) -> str:
    if not value or not value.strip():
        raise ValidationError(
            f"{field} must not be blank",
            errors=[{"field": field, "message": "must not be blank"}],
        )
    return value


def _normalise_tags(tags: Sequence[str]) -> tuple[str, ...]:
    errors: list[dict[str, str]] = []
    seen: set[str] = set()
    for tag in tags:
        if not tag or not tag.strip():
            errors.append({"field": "tags", "message": "tag must not be blank"})
        elif tag in seen:
            errors.append({"field": "tags", "message": f"duplicate tag '{tag}'"})
        seen.add(tag)
    if errors:
        raise ValidationError("Invalid Tags", errors=errors)
    return tuple(tags)


class Answer(Entity):
    """An answer to exactly one question."""

    def __init__(
        self,
        id: str,  # noqa: A002
        question_id: str,
        content: str,
        author: Caller,
        created_at: datetime,
        *,
        updated_at: datetime | None = None,
        accepted: bool = False,
    ) -> None:
        super().__init__(id)
        self._question_id = question_id
        self.content = content
        self.author = author
        self.created_at = created_at
        self.updated_at = updated_at
        self.accepted = accepted

    @property
    def question_id(self) -> str:
        return self._question_id


class Question(AggregateRoot):
    """Aggregate root for a question and its answers."""

    aggregate_type = "Question"

    def __init__(
        self,
        id: str,  # noqa: A002
        title: str,
        content: str,
        tags: Sequence[str],
        asker: Caller,
        created_at: datetime,
        *,
        updated_at: datetime | None = None,
        view_count: int = 0,
        answer_count: int = 0,
        has_accepted_answer: bool = False,
        answers: Sequence[Answer] = (),
        version: int = 0,
    ) -> None:
        super().__init__(id, version)
        self.title = title
        self.content = content
        self.tags = tuple(tags)
        self.asker = asker
        self.created_at = created_at
        self.updated_at = updated_at
        self.view_count = view_count
        self.answer_count = answer_count
        self.has_accepted_answer = has_accepted_answer
        self.answers: list[Answer] = list(answers)

    # ------------------------------------------------------------------
    # Question lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def ask(
        cls,
        *,
        title: str,
        content: str,
        tags: Sequence[str],
        asker: Caller,
        at: datetime,
        question_id: str | None = None,
    ) -> "Question":
        question = cls(
            question_id or new_id(),
            _require_text("title", title),
            _require_text("content", content),
            _normalise_tags(tags),
            asker,
            at,
        )
        question._raise_event(
            QuestionCreated(
                question_id=question.id,
                title=question.title,
                content=question.content,
                tags=question.tags,
                created_at=question.created_at,
            )
        )
        question._check_invariants()
        return question

    def edit(
        self,
        caller: Caller,
        *,
        title: str,
        content: str,
        tags: Sequence[str],
        at: datetime,
    ) -> None:
        self.ensure_asked_by(caller)
        self.title = _require_text("title", title)
        self.content = _require_text("content", content)
        self.tags = _normalise_tags(tags)
        self.updated_at = at
        self._raise_event(
            QuestionUpdated(
                question_id=self.id,
                title=self.title,
                content=self.content,
                tags=self.tags,
            )
        )

    def remove(self, caller: Caller) -> None:
        """Mark the question for deletion; answers go with it."""
        self.ensure_asked_by(caller)
        self._raise_event(QuestionDeleted(question_id=self.id))

    def ensure_asked_by(self, caller: Caller) -> None:
        if caller.id != self.asker.id:
            raise ForbiddenError(
                f"Question '{self.id}' belongs to another user", caller_id=caller.id
            )

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def find_answer(self, answer_id: str) -> Answer | None:
        return next((a for a in self.answers if a.id == answer_id), None)

    def add_answer(
        self,
        author: Caller,
        content: str,
        *,
        at: datetime,
        answer_id: str | None = None,
    ) -> Answer:
        answer = Answer(
            answer_id or new_id(),
            self.id,
            _require_text("content", content),
            author,
            at,
        )
        self.answers.append(answer)
        self.answer_count += 1
        self._check_invariants()
        self._raise_event(
            AnswerCountUpdated(question_id=self.id, answer_count=self.answer_count)
        )
        return answer

    def edit_answer(self, answer_id: str, content: str, *, at: datetime) -> Answer:
        """Edit an answer body.

        No projected field changes, so no event is raised; the version still
        advances so a concurrent writer of the same question conflicts.
        """
        answer = self._owned_answer(answer_id, "Cannot update this answer")
        answer.content = _require_text("content", content)
        answer.updated_at = at
        self._touch()
        return answer

    def delete_answer(self, answer_id: str) -> None:
        answer = self._owned_answer(answer_id, "Cannot delete this answer")
        if answer.accepted:
            raise ConflictError("Cannot delete an accepted answer")
        self.answers.remove(answer)
        self.answer_count -= 1
        self._check_invariants()
        self._raise_event(
            AnswerCountUpdated(question_id=self.id, answer_count=self.answer_count)
        )

    def accept_answer(self, answer_id: str) -> None:
        answer = self._owned_answer(answer_id, "Cannot accept this answer")
        if self.has_accepted_answer:
            raise ConflictError("Question already has an accepted answer")
        answer.accepted = True
        self.has_accepted_answer = True
        self._check_invariants()
        self._raise_event(AnswerAccepted(question_id=self.id))

    def _owned_answer(self, answer_id: str, message: str) -> Answer:
        answer = self.find_answer(answer_id)
        if answer is None:
            raise ConflictError(message, detail={"answer_id": answer_id, "question_id": self.id})
        return answer

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def _check_invariants(self) -> None:
        Invariant.require(
            self.view_count >= 0, "view count must not be negative", question_id=self.id
        )
        Invariant.require(
            self.answer_count == len(self.answers),
            f"answer count {self.answer_count} != {len(self.answers)} answers",
            question_id=self.id,
        )
        accepted = sum(1 for a in self.answers if a.accepted)
        Invariant.require(
            accepted <= 1, "at most one answer may be accepted", question_id=self.id
        )
        Invariant.require(
            self.has_accepted_answer == (accepted == 1),
            "accepted-answer flag does not match the answers",
            question_id=self.id,
        )
        Invariant.require(
            all(a.question_id == self.id for a in self.answers),
            "answer owned by another question",
            question_id=self.id,
        )

    def check_invariants(self) -> None:
        """Public hook used by repositories right before commit."""
        self._check_invariants()


__all__ = ["Answer", "Question"]
