"""ConsistencyVerifier – converges the search projection onto the store."""

from __future__ import annotations

import dataclasses
from typing import Callable

from overflow.application.projection import IndexProjector, SearchProjection, document_from_question
from overflow.kernel.ddd import UnitOfWork
from overflow.observability import get_logger

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class ReconciliationReport:
    """Counts of one reconciliation pass; the ids are kept for inspection."""

    repaired: int = 0
    missing: int = 0
    orphaned: int = 0
    failed: int = 0
    missing_ids: tuple[str, ...] = ()
    orphaned_ids: tuple[str, ...] = ()

    @property
    def consistent(self) -> bool:
        return self.missing == 0 and self.orphaned == 0


class ConsistencyVerifier:
    """Diff the store's question ids against the projection's document ids.

    Missing documents are re-derived from the canonical aggregate; orphaned
    documents are deleted.  Both repairs go through the projector so the
    per-question state moves with them and older in-flight events become
    stale.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        projection: SearchProjection,
        projector: IndexProjector,
    ) -> None:
        self._uow_factory = uow_factory
        self._projection = projection
        self._projector = projector

    async def reconcile(self) -> ReconciliationReport:
        async with self._uow_factory() as uow:
            stored = set(await uow.questions.list_ids())
        projected = set(await self._projection.list_ids())

        missing = tuple(sorted(stored - projected))
        orphaned = tuple(sorted(projected - stored))
        repaired = failed = 0

        for question_id in missing:
            try:
                if await self._repair(question_id):
                    repaired += 1
            except Exception as exc:  # noqa: BLE001
                failed += 1
                logger.error("reconcile.repair_failed", question_id=question_id, error=repr(exc))

        for question_id in orphaned:
            try:
                if await self._evict(question_id):
                    repaired += 1
            except Exception as exc:  # noqa: BLE001
                failed += 1
                logger.error("reconcile.evict_failed", question_id=question_id, error=repr(exc))

        report = ReconciliationReport(
            repaired=repaired,
            missing=len(missing),
            orphaned=len(orphaned),
            failed=failed,
            missing_ids=missing,
            orphaned_ids=orphaned,
        )
        log = logger.info if report.consistent else logger.warning
        log(
            "reconcile.finished",
            stored=len(stored),
            projected=len(projected),
            missing=len(missing),
            orphaned=len(orphaned),
            repaired=repaired,
            failed=failed,
        )
        return report

    async def rebuild(self) -> int:
        """Re-derive every document from the store; returns the number written."""
        async with self._uow_factory() as uow:
            question_ids = await uow.questions.list_ids()
        written = 0
        for question_id in question_ids:
            if await self._repair(question_id):
                written += 1
        logger.info("reconcile.rebuilt", documents=written)
        return written

    async def _repair(self, question_id: str) -> bool:
        async with self._uow_factory() as uow:
            question = await uow.questions.get(question_id)
        if question is None:
            # deleted since the ids were listed
            return False
        return await self._projector.restore(document_from_question(question), question.version)

    async def _evict(self, question_id: str) -> bool:
        async with self._uow_factory() as uow:
            if await uow.questions.get(question_id) is not None:
                return False
        await self._projector.evict(question_id)
        return True


__all__ = ["ConsistencyVerifier", "ReconciliationReport"]
