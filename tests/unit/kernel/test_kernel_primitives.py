"""Unit tests for kernel building blocks – errors, aggregate, channel, caller, clock."""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import UTC, datetime, timedelta, timezone

import pytest

from overflow.kernel.ddd import AggregateRoot, DomainEvent, Invariant, UnitOfWork
from overflow.kernel.errors import (
    BaseError,
    ChannelUnavailableError,
    ConflictError,
    DomainError,
    ExternalServiceError,
    ForbiddenError,
    InfrastructureError,
    InvariantViolationError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from overflow.kernel.messaging import Delivery
from overflow.kernel.security import Caller, require_caller
from overflow.kernel.time import FrozenClock, to_unix_seconds


@dataclasses.dataclass(frozen=True, kw_only=True)
class Renamed(DomainEvent):
    name: str


class Thing(AggregateRoot):
    aggregate_type = "Thing"

    def rename(self, name: str) -> None:
        self._raise_event(Renamed(name=name))


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_hierarchy(self) -> None:
        assert issubclass(ValidationError, DomainError)
        assert issubclass(ConflictError, DomainError)
        assert issubclass(ChannelUnavailableError, InfrastructureError)
        assert issubclass(ForbiddenError, BaseError)

    def test_default_codes(self) -> None:
        assert NotFoundError("Question", "q-1").code == "not_found"
        assert ConflictError("x").code == "conflict"
        assert UnauthenticatedError("x").code == "unauthenticated"

    def test_not_found_message(self) -> None:
        err = NotFoundError("Question", "q-1")
        assert err.message == "Question 'q-1' not found"
        assert err.resource == "Question"
        assert err.identifier == "q-1"

    def test_to_dict_includes_cause(self) -> None:
        cause = RuntimeError("boom")
        err = ChannelUnavailableError("down", topic="questions", cause=cause)
        data = err.to_dict()
        assert data["code"] == "channel_unavailable"
        assert "boom" in data["cause"]
        assert err.__cause__ is cause
        assert err.topic == "questions"

    def test_transient_flag(self) -> None:
        assert ChannelUnavailableError().transient is True
        assert ConflictError("x").transient is False
        data = ChannelUnavailableError().to_dict()
        assert data["type"] == "ChannelUnavailableError"
        assert data["transient"] is True

    def test_validation_errors_in_dict(self) -> None:
        err = ValidationError("Invalid Tags", errors=[{"field": "tags", "message": "x"}])
        assert err.to_dict()["errors"] == [{"field": "tags", "message": "x"}]

    def test_external_service_default_message(self) -> None:
        err = ExternalServiceError("typesense", status_code=400)
        assert "typesense" in err.message
        assert err.status_code == 400


# ---------------------------------------------------------------------------
# AggregateRoot
# ---------------------------------------------------------------------------


class TestAggregateRoot:
    def test_raise_event_bumps_version_and_sequence(self) -> None:
        thing = Thing("t-1")
        thing.rename("a")
        thing.rename("b")
        events = thing.pull_events()
        assert [e.sequence for e in events] == [1, 2]
        assert thing.version == 2
        assert thing.persisted_version == 0
        assert events[0].aggregate_type == "Thing"
        assert events[0].aggregate_id == "t-1"
        assert events[0].event_type == "Renamed"

    def test_pull_events_clears(self) -> None:
        thing = Thing("t-1")
        thing.rename("a")
        assert len(thing.pending_events) == 1
        thing.pull_events()
        assert thing.pending_events == []

    def test_mark_persisted(self) -> None:
        thing = Thing("t-1", version=3)
        thing.rename("a")
        thing.mark_persisted()
        assert thing.persisted_version == 4

    def test_entities_compare_by_id(self) -> None:
        assert Thing("t-1") == Thing("t-1")
        assert Thing("t-1") != Thing("t-2")

    def test_event_ids_are_unique(self) -> None:
        assert Renamed(name="a").event_id != Renamed(name="a").event_id


class TestInvariant:
    def test_require_raises(self) -> None:
        with pytest.raises(InvariantViolationError):
            Invariant.require(False, "nope")

    def test_require_carries_detail(self) -> None:
        with pytest.raises(InvariantViolationError) as info:
            Invariant.require(False, "nope", question_id="q-1")
        assert info.value.detail == {"question_id": "q-1"}

    def test_require_passes(self) -> None:
        Invariant.require(True, "fine")


class TestUnitOfWork:
    def test_commits_on_success_and_rolls_back_on_error(self) -> None:
        calls: list[str] = []

        class RecordingUoW(UnitOfWork):
            async def commit(self) -> None:
                calls.append("commit")

            async def rollback(self) -> None:
                calls.append("rollback")

        async def _run() -> None:
            async with RecordingUoW():
                pass
            with pytest.raises(RuntimeError):
                async with RecordingUoW():
                    raise RuntimeError("boom")

        asyncio.run(_run())
        assert calls == ["commit", "rollback"]


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class TestDelivery:
    def test_ack_is_idempotent(self) -> None:
        acks: list[int] = []

        async def ack() -> None:
            acks.append(1)

        delivery = Delivery("m-1", "q-1", b"{}", _ack=ack)

        async def _run() -> None:
            await delivery.ack()
            await delivery.ack()

        asyncio.run(_run())
        assert acks == [1]
        assert delivery.acked is True


# ---------------------------------------------------------------------------
# Caller / Clock
# ---------------------------------------------------------------------------


class TestRequireCaller:
    def test_returns_caller(self) -> None:
        caller = Caller("u-1", "Alice")
        assert require_caller(caller) is caller

    @pytest.mark.parametrize("caller", [None, Caller("", "Alice"), Caller("u-1", "")])
    def test_missing_claims(self, caller: Caller | None) -> None:
        with pytest.raises(UnauthenticatedError, match="Cannot get user details"):
            require_caller(caller)


class TestClock:
    def test_frozen_clock_advance(self) -> None:
        start = datetime(2026, 1, 1, tzinfo=UTC)
        clock = FrozenClock(start)
        clock.advance(minutes=5)
        assert clock.now() == start + timedelta(minutes=5)

    def test_unix_seconds(self) -> None:
        assert to_unix_seconds(datetime(1970, 1, 1, 0, 1, tzinfo=UTC)) == 60

    def test_unix_seconds_naive_is_utc(self) -> None:
        assert to_unix_seconds(datetime(1970, 1, 1, 0, 1)) == 60

    def test_unix_seconds_other_zone(self) -> None:
        moment = datetime(1970, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=1)))
        assert to_unix_seconds(moment) == 0
