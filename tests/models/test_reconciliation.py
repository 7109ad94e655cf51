"""
Reconciliation Policy Unit Tests

The decision table, the degraded fallback and the configurable conflict
bias. Under the default policy a disagreement never resolves to BOT.
"""

import itertools

import pytest

from detector.config import ConflictPolicy
from detector.models.reconciliation import ReconciliationPolicy
from detector.schemas.outputs import Classification, ReconciliationOutcome

HUMAN = Classification.HUMAN
BOT = Classification.BOT
UNKNOWN = Classification.UNKNOWN


@pytest.fixture
def policy():
    return ReconciliationPolicy()


class TestDefaultPolicy:

    @pytest.mark.parametrize(
        "local,remote,expected",
        [
            (BOT, BOT, BOT),
            (HUMAN, HUMAN, HUMAN),
            (BOT, HUMAN, HUMAN),
            (HUMAN, BOT, HUMAN),
            (BOT, UNKNOWN, BOT),
            (HUMAN, UNKNOWN, HUMAN),
        ],
    )
    def test_decision_table(self, policy, local, remote, expected):
        assert policy.reconcile(local, remote) == expected

    def test_outcomes(self, policy):
        assert policy.decide(BOT, BOT)[1] == ReconciliationOutcome.CONFIRMED
        assert policy.decide(HUMAN, BOT)[1] == ReconciliationOutcome.DISCREPANCY
        assert policy.decide(BOT, UNKNOWN)[1] == ReconciliationOutcome.DEGRADED

    def test_disagreement_never_resolves_to_bot(self, policy):
        for local, remote in itertools.permutations([HUMAN, BOT], 2):
            assert policy.reconcile(local, remote) == HUMAN

    def test_unknown_local_is_rejected(self, policy):
        with pytest.raises(ValueError):
            policy.reconcile(UNKNOWN, BOT)


class TestConfigurableConflictPolicy:

    def test_prefer_local(self):
        policy = ReconciliationPolicy(ConflictPolicy.PREFER_LOCAL)
        assert policy.reconcile(BOT, HUMAN) == BOT
        assert policy.reconcile(HUMAN, BOT) == HUMAN

    def test_prefer_remote(self):
        policy = ReconciliationPolicy(ConflictPolicy.PREFER_REMOTE)
        assert policy.reconcile(BOT, HUMAN) == HUMAN
        assert policy.reconcile(HUMAN, BOT) == BOT

    def test_agreement_unaffected_by_policy(self):
        for conflict_policy in ConflictPolicy:
            policy = ReconciliationPolicy(conflict_policy)
            assert policy.decide(BOT, BOT) == (BOT, ReconciliationOutcome.CONFIRMED)
            assert policy.decide(BOT, UNKNOWN) == (BOT, ReconciliationOutcome.DEGRADED)
