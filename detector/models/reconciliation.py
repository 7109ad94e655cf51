"""
Reconciliation Policy

Combines the local rule verdict with the remote model verdict.

    remote UNKNOWN     -> local      (DEGRADED, remote call failed)
    remote == local    -> local      (CONFIRMED)
    remote != local    -> HUMAN      (DISCREPANCY, default PREFER_HUMAN)

Under the default policy a disagreement never resolves to BOT.
"""

import logging
from typing import Tuple

from detector.config import ConflictPolicy
from detector.schemas.outputs import Classification, ReconciliationOutcome


logger = logging.getLogger(__name__)


class ReconciliationPolicy:
    """Two-source verdict reconciliation with a configurable conflict bias."""

    def __init__(self, conflict_policy: ConflictPolicy = ConflictPolicy.PREFER_HUMAN) -> None:
        self.conflict_policy = conflict_policy

    def decide(
        self,
        local: Classification,
        remote: Classification
    ) -> Tuple[Classification, ReconciliationOutcome]:
        """
        Reconcile the two verdicts.

        Raises:
            ValueError: if the local verdict is UNKNOWN. Sessions without a
                local opinion are never reconciled.
        """
        if local == Classification.UNKNOWN:
            raise ValueError("Cannot reconcile without a local verdict")

        if remote == Classification.UNKNOWN:
            logger.warning(
                f"Remote classification unavailable; final answer is the "
                f"local classification: {local.name}"
            )
            return (local, ReconciliationOutcome.DEGRADED)

        if remote == local:
            logger.info(f"Both classifications match: {local.name}")
            return (local, ReconciliationOutcome.CONFIRMED)

        final = self._resolve_conflict(local, remote)
        logger.warning(
            f"Discrepancy detected: local={local.name} remote={remote.name} "
            f"-> {final.name} ({self.conflict_policy.value})"
        )
        return (final, ReconciliationOutcome.DISCREPANCY)

    def reconcile(self, local: Classification, remote: Classification) -> Classification:
        return self.decide(local, remote)[0]

    def _resolve_conflict(self, local: Classification, remote: Classification) -> Classification:
        if self.conflict_policy == ConflictPolicy.PREFER_LOCAL:
            return local
        if self.conflict_policy == ConflictPolicy.PREFER_REMOTE:
            return remote
        return Classification.HUMAN
