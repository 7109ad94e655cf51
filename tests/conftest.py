"""
Detector Test Suite - Shared Pytest Fixtures

This conftest.py provides:
- Sample / trajectory builders
- Fast configuration (short observation window)
- In-memory diagnostic store
- Scripted remote classifiers

Usage:
    pytest tests/ -v
"""

import asyncio
from typing import List, Optional, Sequence, Tuple

import pytest

from detector.config import DetectionConfig
from detector.schemas.inputs import Sample
from detector.schemas.outputs import Classification
from diagnostics.store import InMemoryDiagnosticStore


# =============================================================================
# Sample Builders
# =============================================================================

def make_sample(x: float, y: float, t: float, trusted: bool = True) -> Sample:
    """Build a single Sample."""
    return Sample(x=x, y=y, t=t, trusted=trusted)


def make_samples(points: Sequence[Tuple[float, float, float]]) -> List[Sample]:
    """Build samples from (x, y, t) tuples."""
    return [make_sample(x, y, t) for x, y, t in points]


# 100px every 100ms: constant 1000 px/s, zero variance
CONSTANT_SPEED_POINTS = [
    (0, 0, 0),
    (100, 0, 100),
    (200, 0, 200),
    (300, 0, 300),
    (400, 0, 400),
]

# Alternating 200 / 25 / 2000 / 250 px/s: fast and erratic
ERRATIC_SPEED_POINTS = [
    (0, 0, 0),
    (10, 0, 50),
    (10, 10, 450),
    (110, 10, 500),
    (110, 110, 900),
]

# Finite coordinates whose displacements overflow float64
OVERFLOW_POINTS = [
    (-1e308, 0, 0),
    (1e308, 0, 100),
    (-1e308, 0, 200),
    (1e308, 0, 300),
    (-1e308, 0, 400),
]


# =============================================================================
# Remote Classifier Doubles
# =============================================================================

class ScriptedRemote:
    """Remote classifier returning a fixed verdict."""

    def __init__(self, verdict: Classification) -> None:
        self.verdict = verdict
        self.calls: List[List[Sample]] = []

    async def classify(self, samples: Sequence[Sample]) -> Classification:
        self.calls.append(list(samples))
        return self.verdict


class HangingRemote:
    """Remote classifier that never answers."""

    def __init__(self) -> None:
        self.calls = 0

    async def classify(self, samples: Sequence[Sample]) -> Classification:
        self.calls += 1
        await asyncio.sleep(3600)
        return Classification.BOT


class FailingRemote:
    """Remote classifier that raises."""

    async def classify(self, samples: Sequence[Sample]) -> Classification:
        raise RuntimeError("connection reset")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def config() -> DetectionConfig:
    """Default thresholds with a short window and remote timeout."""
    return DetectionConfig(window_seconds=0.05, remote_timeout_seconds=0.05)


@pytest.fixture
def store() -> InMemoryDiagnosticStore:
    return InMemoryDiagnosticStore()


@pytest.fixture
def constant_speed_samples() -> List[Sample]:
    return make_samples(CONSTANT_SPEED_POINTS)


@pytest.fixture
def erratic_speed_samples() -> List[Sample]:
    return make_samples(ERRATIC_SPEED_POINTS)


@pytest.fixture
def remote_factory():
    """Build a ScriptedRemote for a given verdict."""
    def _factory(verdict: Optional[Classification] = None):
        return ScriptedRemote(verdict if verdict is not None else Classification.UNKNOWN)
    return _factory
