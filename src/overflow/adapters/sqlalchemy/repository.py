"""SQLAlchemy adapter – SqlAlchemyQuestionRepository."""
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import delete, select, update

from overflow.adapters.sqlalchemy.models import AnswerRow, QuestionRow, QuestionTagRow
from overflow.domain import Answer, Question, QuestionRepository
from overflow.kernel.errors import ConflictError
from overflow.kernel.security import Caller


class SqlAlchemyQuestionRepository(QuestionRepository):
    """Question aggregates stored as one ``questions`` row plus ``answers`` rows.

    Writes are guarded by the ``version`` column: the row is only updated (or
    deleted) while it still holds ``question.persisted_version``.
    ``view_count`` is owned by :meth:`increment_view_count` and is never
    written back from an aggregate.
    """

    def __init__(self, session: Any) -> None:
        self._session = session

    async def get(self, question_id: str) -> Question | None:
        row = await self._session.get(QuestionRow, question_id, populate_existing=True)
        if row is None:
            return None
        result = await self._session.execute(
            select(AnswerRow)
            .where(AnswerRow.question_id == question_id)
            .order_by(AnswerRow.created_at, AnswerRow.id)
        )
        return _to_question(row, result.scalars().all())

    async def find_question_id_for_answer(self, answer_id: str) -> str | None:
        result = await self._session.execute(
            select(AnswerRow.question_id).where(AnswerRow.id == answer_id)
        )
        return result.scalar_one_or_none()

    async def add(self, question: Question) -> None:
        question.check_invariants()
        self._session.add(
            QuestionRow(
                id=question.id,
                title=question.title,
                content=question.content,
                tags=list(question.tags),
                asker_id=question.asker.id,
                asker_name=question.asker.display_name,
                created_at=question.created_at,
                updated_at=question.updated_at,
                view_count=question.view_count,
                answer_count=question.answer_count,
                has_accepted_answer=question.has_accepted_answer,
                version=question.version,
            )
        )
        # parent row first: without a relationship the unit of work does not order the inserts
        await self._session.flush()
        self._session.add_all(_to_tag_row(question.id, tag) for tag in question.tags)
        self._session.add_all(_to_answer_row(a) for a in question.answers)
        await self._session.flush()
        question.mark_persisted()

    async def save(self, question: Question) -> None:
        question.check_invariants()
        result = await self._session.execute(
            update(QuestionRow)
            .where(QuestionRow.id == question.id)
            .where(QuestionRow.version == question.persisted_version)
            .values(
                title=question.title,
                content=question.content,
                tags=list(question.tags),
                updated_at=question.updated_at,
                answer_count=question.answer_count,
                has_accepted_answer=question.has_accepted_answer,
                version=question.version,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise self._conflict(question)
        await self._sync_tags(question)
        await self._sync_answers(question)
        question.mark_persisted()

    async def remove(self, question: Question) -> None:
        # children first: not every backend enforces ON DELETE CASCADE
        for child in (AnswerRow, QuestionTagRow):
            await self._session.execute(
                delete(child)
                .where(child.question_id == question.id)
                .execution_options(synchronize_session=False)
            )
        result = await self._session.execute(
            delete(QuestionRow)
            .where(QuestionRow.id == question.id)
            .where(QuestionRow.version == question.persisted_version)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise self._conflict(question)
        question.mark_persisted()

    async def list_recent(self, tag: str | None = None) -> list[Question]:
        stmt = select(QuestionRow).order_by(QuestionRow.created_at.desc(), QuestionRow.id)
        if tag is not None:
            stmt = stmt.where(
                QuestionRow.id.in_(
                    select(QuestionTagRow.question_id).where(QuestionTagRow.tag == tag)
                )
            )
        rows = list((await self._session.execute(stmt)).scalars().all())
        if not rows:
            return []
        answers = await self._session.execute(
            select(AnswerRow)
            .where(AnswerRow.question_id.in_([r.id for r in rows]))
            .order_by(AnswerRow.created_at, AnswerRow.id)
        )
        by_question: dict[str, list[AnswerRow]] = {}
        for answer in answers.scalars().all():
            by_question.setdefault(answer.question_id, []).append(answer)
        return [_to_question(r, by_question.get(r.id, [])) for r in rows]

    async def list_ids(self) -> list[str]:
        result = await self._session.execute(select(QuestionRow.id).order_by(QuestionRow.id))
        return list(result.scalars().all())

    async def increment_view_count(self, question_id: str) -> bool:
        result = await self._session.execute(
            update(QuestionRow)
            .where(QuestionRow.id == question_id)
            .values(view_count=QuestionRow.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    # ------------------------------------------------------------------

    async def _sync_answers(self, question: Question) -> None:
        result = await self._session.execute(
            select(AnswerRow).where(AnswerRow.question_id == question.id)
        )
        stored = {row.id: row for row in result.scalars().all()}
        current = {answer.id: answer for answer in question.answers}
        for answer_id, row in stored.items():
            if answer_id not in current:
                await self._session.delete(row)
        for answer_id, answer in current.items():
            row = stored.get(answer_id)
            if row is None:
                self._session.add(_to_answer_row(answer))
            elif _answer_changed(row, answer):
                row.content = answer.content
                row.updated_at = answer.updated_at
                row.accepted = answer.accepted
        await self._session.flush()

    async def _sync_tags(self, question: Question) -> None:
        result = await self._session.execute(
            select(QuestionTagRow).where(QuestionTagRow.question_id == question.id)
        )
        stored = {row.tag: row for row in result.scalars().all()}
        for tag, row in stored.items():
            if tag not in question.tags:
                await self._session.delete(row)
        self._session.add_all(
            _to_tag_row(question.id, tag) for tag in question.tags if tag not in stored
        )
        await self._session.flush()

    @staticmethod
    def _conflict(question: Question) -> ConflictError:
        return ConflictError(
            f"Question '{question.id}' was modified concurrently",
            detail={"question_id": question.id, "expected_version": question.persisted_version},
        )


def _to_tag_row(question_id: str, tag: str) -> QuestionTagRow:
    return QuestionTagRow(question_id=question_id, tag=tag)


def _answer_changed(row: AnswerRow, answer: Answer) -> bool:
    return (row.content, row.updated_at, row.accepted) != (
        answer.content,
        answer.updated_at,
        answer.accepted,
    )


def _to_answer_row(answer: Answer) -> AnswerRow:
    return AnswerRow(
        id=answer.id,
        question_id=answer.question_id,
        content=answer.content,
        author_id=answer.author.id,
        author_name=answer.author.display_name,
        created_at=answer.created_at,
        updated_at=answer.updated_at,
        accepted=answer.accepted,
    )


def _to_question(row: QuestionRow, answers: Sequence[AnswerRow]) -> Question:
    return Question(
        row.id,
        row.title,
        row.content,
        tuple(row.tags or ()),
        Caller(row.asker_id, row.asker_name),
        row.created_at,
        updated_at=row.updated_at,
        view_count=row.view_count,
        answer_count=row.answer_count,
        has_accepted_answer=row.has_accepted_answer,
        answers=[
            Answer(
                a.id,
                a.question_id,
                a.content,
                Caller(a.author_id, a.author_name),
                a.created_at,
                updated_at=a.updated_at,
                accepted=a.accepted,
            )
            for a in answers
        ],
        version=row.version,
    )


__all__ = ["SqlAlchemyQuestionRepository"]
