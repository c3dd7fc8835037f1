"""Consistency verification between the aggregate store and the projection."""

from overflow.application.reconciliation.verifier import ConsistencyVerifier, ReconciliationReport
from overflow.application.reconciliation.worker import ReconciliationWorker

__all__ = ["ConsistencyVerifier", "ReconciliationReport", "ReconciliationWorker"]
