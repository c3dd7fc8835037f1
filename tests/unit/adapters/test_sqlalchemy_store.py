"""Unit tests for the SQLAlchemy adapter on aiosqlite."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from overflow.adapters.sqlalchemy import (
    SqlAlchemyDeadLetterStore,
    SqlAlchemyProjectionStateStore,
    SqlAlchemySessionFactory,
    SqlAlchemyUnitOfWork,
)
from overflow.application.projection import ProjectionState
from overflow.application.publishing import EventPublisher, OutboxRelay
from overflow.application.questions import QuestionService
from overflow.domain import Question, StaticTagValidator
from overflow.kernel.errors import ChannelUnavailableError, ConflictError, NotFoundError
from overflow.kernel.messaging import DeadLetterEntry, OutboxStatus
from overflow.kernel.security import Caller
from overflow.resilience import RetryPolicy
from overflow.testing.fakes import FakeClock, InMemoryEventChannel

ALICE = Caller("alice", "Alice")
BOB = Caller("bob", "Bob")
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def with_db(tmp_path, body):
    """Run ``body(sessions)`` against a fresh SQLite file database."""

    async def _run():
        sessions = SqlAlchemySessionFactory(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
        await sessions.create_schema()
        try:
            return await body(sessions)
        finally:
            await sessions.dispose()

    return asyncio.run(_run())


def _relay(sessions, channel: InMemoryEventChannel) -> OutboxRelay:
    publisher = EventPublisher(
        channel, retry_policy=RetryPolicy.no_wait(2, (ChannelUnavailableError,))
    )
    return OutboxRelay(lambda: SqlAlchemyUnitOfWork(sessions), publisher)


def _question(**overrides) -> Question:
    kwargs = dict(title="How?", content="Body", tags=["python", "kafka"], asker=ALICE, at=T0)
    kwargs.update(overrides)
    question = Question.ask(**kwargs)
    question.pull_events()
    return question


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TestQuestionRepository:
    def test_add_and_get_round_trip(self, tmp_path) -> None:
        async def body(sessions):
            question = _question()
            question.add_answer(BOB, "one", at=T0)
            question.pull_events()
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(question)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return question, await uow.questions.get(question.id)

        original, loaded = with_db(tmp_path, body)
        assert loaded.title == "How?"
        assert loaded.tags == ("python", "kafka")
        assert loaded.asker == ALICE
        assert loaded.version == original.version == 2
        assert loaded.persisted_version == 2
        assert [a.content for a in loaded.answers] == ["one"]
        assert loaded.answers[0].author == BOB
        assert loaded.answer_count == 1

    def test_get_unknown(self, tmp_path) -> None:
        async def body(sessions):
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                assert await uow.questions.get("missing") is None
                with pytest.raises(NotFoundError):
                    await uow.questions.get_or_raise("missing")

        with_db(tmp_path, body)

    def test_save_syncs_answers(self, tmp_path) -> None:
        async def body(sessions):
            question = _question()
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(question)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                loaded = await uow.questions.get(question.id)
                a1 = loaded.add_answer(BOB, "one", at=T0)
                a2 = loaded.add_answer(BOB, "two", at=T0)
                loaded.accept_answer(a1.id)
                await uow.questions.save(loaded)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                loaded = await uow.questions.get(question.id)
                loaded.delete_answer(a2.id)
                loaded.edit_answer(a1.id, "one, edited", at=T0)
                await uow.questions.save(loaded)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return a1.id, await uow.questions.get(question.id)

        accepted_id, loaded = with_db(tmp_path, body)
        assert [a.id for a in loaded.answers] == [accepted_id]
        assert loaded.answers[0].accepted is True
        assert loaded.answers[0].content == "one, edited"
        assert loaded.has_accepted_answer is True
        assert loaded.answer_count == 1
        assert loaded.version == 6

    def test_stale_save_conflicts(self, tmp_path) -> None:
        async def body(sessions):
            question = _question()
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(question)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                first = await uow.questions.get(question.id)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                second = await uow.questions.get(question.id)
            first.add_answer(BOB, "first", at=T0)
            second.add_answer(BOB, "second", at=T0)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.save(first)
            with pytest.raises(ConflictError):
                async with SqlAlchemyUnitOfWork(sessions) as uow:
                    await uow.questions.save(second)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return await uow.questions.get(question.id)

        loaded = with_db(tmp_path, body)
        assert [a.content for a in loaded.answers] == ["first"]

    def test_stale_writer_does_not_overwrite_an_answer_edit(self, tmp_path) -> None:
        async def body(sessions):
            question = _question()
            answer = question.add_answer(BOB, "one", at=T0)
            question.pull_events()
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(question)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                stale = await uow.questions.get(question.id)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                editor = await uow.questions.get(question.id)
                editor.edit_answer(answer.id, "edited", at=T0)
                await uow.questions.save(editor)
            stale.add_answer(BOB, "two", at=T0)
            with pytest.raises(ConflictError):
                async with SqlAlchemyUnitOfWork(sessions) as uow:
                    await uow.questions.save(stale)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return await uow.questions.get(question.id)

        loaded = with_db(tmp_path, body)
        assert [a.content for a in loaded.answers] == ["edited"]
        assert loaded.answer_count == 1

    def test_remove_cascades(self, tmp_path) -> None:
        async def body(sessions):
            question = _question()
            answer = question.add_answer(BOB, "one", at=T0)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(question)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                loaded = await uow.questions.get(question.id)
                loaded.remove(ALICE)
                await uow.questions.remove(loaded)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return (
                    await uow.questions.get(question.id),
                    await uow.questions.find_question_id_for_answer(answer.id),
                )

        assert with_db(tmp_path, body) == (None, None)

    def test_view_count_is_atomic_and_not_overwritten(self, tmp_path) -> None:
        async def body(sessions):
            question = _question()
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(question)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                loaded = await uow.questions.get(question.id)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                assert await uow.questions.increment_view_count(question.id) is True
                assert await uow.questions.increment_view_count("missing") is False
            loaded.edit(ALICE, title="New", content="Body", tags=[], at=T0)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.save(loaded)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return await uow.questions.get(question.id)

        loaded = with_db(tmp_path, body)
        assert loaded.view_count == 1
        assert loaded.title == "New"

    def test_list_recent_and_ids(self, tmp_path) -> None:
        async def body(sessions):
            old = _question(tags=["python"], at=T0)
            new = _question(tags=["kafka"], at=T0.replace(hour=13))
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(old)
                await uow.questions.add(new)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return (
                    old.id,
                    new.id,
                    [q.id for q in await uow.questions.list_recent()],
                    [q.id for q in await uow.questions.list_recent("python")],
                    await uow.questions.list_ids(),
                )

        old_id, new_id, everything, python, ids = with_db(tmp_path, body)
        assert everything == [new_id, old_id]
        assert python == [old_id]
        assert ids == sorted([old_id, new_id])

    def test_tag_filter_follows_edits(self, tmp_path) -> None:
        async def body(sessions):
            old = _question(tags=["python"], at=T0)
            new = _question(tags=["kafka"], at=T0.replace(hour=13))
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                await uow.questions.add(old)
                await uow.questions.add(new)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                loaded = await uow.questions.get(old.id)
                loaded.edit(ALICE, title="How?", content="Body", tags=["kafka", "sql"], at=T0)
                await uow.questions.save(loaded)
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return (
                    old.id,
                    new.id,
                    [q.id for q in await uow.questions.list_recent("python")],
                    [q.id for q in await uow.questions.list_recent("kafka")],
                    [q.id for q in await uow.questions.list_recent("sql")],
                )

        old_id, new_id, python, kafka, sql = with_db(tmp_path, body)
        assert python == []
        assert kafka == [new_id, old_id]
        assert sql == [old_id]


# ---------------------------------------------------------------------------
# Outbox and the service on top of the relational store
# ---------------------------------------------------------------------------


class TestOutboxAndService:
    def test_rollback_discards_question_and_outbox(self, tmp_path) -> None:
        async def body(sessions):
            question = Question.ask(title="How?", content="Body", tags=[], asker=ALICE, at=T0)
            publisher = EventPublisher(InMemoryEventChannel())
            with pytest.raises(RuntimeError):
                async with SqlAlchemyUnitOfWork(sessions) as uow:
                    await uow.questions.add(question)
                    for envelope in question.pull_events():
                        await uow.outbox.save(publisher.to_outbox_record(envelope))
                    raise RuntimeError("abort")
            async with SqlAlchemyUnitOfWork(sessions) as uow:
                return await uow.questions.get(question.id), await uow.outbox.get_pending()

        assert with_db(tmp_path, body) == (None, [])

    def test_service_end_to_end(self, tmp_path) -> None:
        channel = InMemoryEventChannel()

        async def body(sessions):
            uow_factory = lambda: SqlAlchemyUnitOfWork(sessions)  # noqa: E731
            relay = _relay(sessions, channel)
            service = QuestionService(
                uow_factory, StaticTagValidator(["python"]), relay, clock=FakeClock()
            )
            created = await service.create_question("How?", "Body", ["python"], ALICE)
            answer = await service.add_answer(created.value.id, BOB, "one")
            await service.accept_answer(created.value.id, answer.value.id)
            viewed = await service.get_question(created.value.id)
            async with uow_factory() as uow:
                pending = await uow.outbox.get_pending()
            return viewed, pending

        viewed, pending = with_db(tmp_path, body)
        assert viewed.view_count == 1
        assert viewed.has_accepted_answer is True
        assert pending == []
        assert [m.key for m in channel.published] == [viewed.id] * 3

    def test_failed_publish_stays_pending(self, tmp_path) -> None:
        channel = InMemoryEventChannel()

        async def body(sessions):
            uow_factory = lambda: SqlAlchemyUnitOfWork(sessions)  # noqa: E731
            relay = _relay(sessions, channel)
            service = QuestionService(uow_factory, StaticTagValidator(["python"]), relay)
            channel.fail_next(2)
            created = await service.create_question("How?", "Body", ["python"], ALICE)
            async with uow_factory() as uow:
                pending = await uow.outbox.get_pending()
            return created, pending

        created, pending = with_db(tmp_path, body)
        assert created.sync_pending is True
        [record] = pending
        assert record.status == OutboxStatus.PENDING
        assert record.retry_count == 1
        assert record.sequence == 1


# ---------------------------------------------------------------------------
# Projection state and dead letters
# ---------------------------------------------------------------------------


class TestBookkeeping:
    def test_projection_state_upsert(self, tmp_path) -> None:
        async def body(sessions):
            store = SqlAlchemyProjectionStateStore(sessions)
            for version, title in ((1, "a"), (2, "b")):
                await store.put(
                    ProjectionState(
                        "q-1", present=True, versions={"content": version}, values={"title": title}
                    )
                )
            return await store.get("q-1"), await store.get("missing")

        state, missing = with_db(tmp_path, body)
        assert state.versions == {"content": 2}
        assert state.values == {"title": "b"}
        assert missing is None

    def test_dead_letters(self, tmp_path) -> None:
        async def body(sessions):
            store = SqlAlchemyDeadLetterStore(sessions)
            await store.push(
                DeadLetterEntry(message_id="m-1", key="q-1", payload=b"x", reason="bad")
            )
            return await store.list()

        [entry] = with_db(tmp_path, body)
        assert entry.message_id == "m-1"
        assert entry.payload == b"x"
        assert entry.reason == "bad"
