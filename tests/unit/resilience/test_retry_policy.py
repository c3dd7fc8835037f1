"""Unit tests for RetryPolicy."""

from __future__ import annotations

import asyncio
import warnings

import pytest

from overflow.kernel.errors import ChannelUnavailableError, ValidationError
from overflow.resilience import RetryPolicy


class Flaky:
    """Fails *failures* times, then returns ``"ok"``."""

    def __init__(self, failures: int, exc: type[Exception] = ChannelUnavailableError) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc("boom")
        return "ok"


class TestRetryPolicy:
    def test_succeeds_after_transient_failures(self) -> None:
        flaky = Flaky(2)
        policy = RetryPolicy.no_wait(3, (ChannelUnavailableError,))
        assert asyncio.run(policy.execute_async(flaky)) == "ok"
        assert flaky.calls == 3

    def test_exhausted_budget_reraises_last_error(self) -> None:
        flaky = Flaky(5)
        policy = RetryPolicy.no_wait(3, (ChannelUnavailableError,))
        with pytest.raises(ChannelUnavailableError):
            asyncio.run(policy.execute_async(flaky))
        assert flaky.calls == 3

    def test_other_errors_are_not_retried(self) -> None:
        flaky = Flaky(1, ValidationError)
        policy = RetryPolicy.no_wait(3, (ChannelUnavailableError,))
        with pytest.raises(ValidationError):
            asyncio.run(policy.execute_async(flaky))
        assert flaky.calls == 1

    def test_single_attempt(self) -> None:
        flaky = Flaky(1)
        with pytest.raises(ChannelUnavailableError):
            asyncio.run(RetryPolicy.no_wait(1, (ChannelUnavailableError,)).execute_async(flaky))
        assert flaky.calls == 1

    def test_backoff_is_waited(self) -> None:
        flaky = Flaky(1)
        policy = RetryPolicy(max_attempts=2, base_delay=0.01, max_delay=0.01, jitter=0)
        assert asyncio.run(policy.execute_async(flaky)) == "ok"

    def test_building_the_retrier_emits_no_warning(self) -> None:
        policy = RetryPolicy(max_attempts=3, base_delay=0.01, max_delay=0.05, jitter=0.01)
        flaky = Flaky(2)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert asyncio.run(policy.execute_async(flaky)) == "ok"
        assert flaky.calls == 3

    def test_invalid_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_repr(self) -> None:
        assert repr(RetryPolicy(max_attempts=4, base_delay=0.5)) == "RetryPolicy(max_attempts=4, base_delay=0.5)"
