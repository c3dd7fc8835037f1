"""Periodic reconciliation."""

from __future__ import annotations

import asyncio

from overflow.application.reconciliation.verifier import ConsistencyVerifier
from overflow.observability import get_logger

logger = get_logger(__name__)


class ReconciliationWorker:
    """Run :meth:`ConsistencyVerifier.reconcile` every *interval_seconds*.

    A failed run is logged and retried at the next interval.
    """

    def __init__(self, verifier: ConsistencyVerifier, interval_seconds: float = 300.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._verifier = verifier
        self._interval = interval_seconds
        self.runs = 0

    async def run(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await self._verifier.reconcile()
            except Exception as exc:  # noqa: BLE001
                logger.exception("reconcile.run_failed", error=repr(exc))
            self.runs += 1
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue


__all__ = ["ReconciliationWorker"]
