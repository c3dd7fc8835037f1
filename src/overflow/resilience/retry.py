"""Resilience – RetryPolicy backed by tenacity."""
from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

import tenacity

from overflow.observability import get_logger

T = TypeVar("T")
logger = get_logger(__name__)


class RetryPolicy:
    """Bounded retry with exponential backoff and jitter.

    Only exceptions listed in *retry_on* are retried; anything else propagates
    on the first attempt.  After *max_attempts* the last error is re-raised.

    Example::

        policy = RetryPolicy(max_attempts=5, retry_on=(ChannelUnavailableError,))
        await policy.execute_async(lambda: bus.publish(message))
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.1,
        max_delay: float = 5.0,
        jitter: float = 0.1,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.retry_on = retry_on

    def _before_sleep(self, state: tenacity.RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "retry.scheduled",
            attempt=state.attempt_number,
            delay=state.next_action.sleep if state.next_action else None,
            error=repr(exc),
        )

    def _build(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.max_attempts),
            wait=tenacity.wait_exponential(multiplier=self.base_delay, max=self.max_delay)
            + tenacity.wait_random(0, self.jitter),
            retry=tenacity.retry_if_exception_type(self.retry_on),
            before_sleep=self._before_sleep,
            reraise=True,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute *func* with retry."""
        async for attempt in self._build():
            with attempt:
                result = await func()
        return result  # type: ignore[possibly-undefined]

    @classmethod
    def no_wait(cls, max_attempts: int, retry_on: tuple[type[BaseException], ...]) -> "RetryPolicy":
        """Policy without delays, for tests and tight local loops."""
        return cls(max_attempts=max_attempts, base_delay=0, max_delay=0, jitter=0, retry_on=retry_on)

    def __repr__(self) -> str:
        return f"RetryPolicy(max_attempts={self.max_attempts}, base_delay={self.base_delay})"


__all__ = ["RetryPolicy"]
