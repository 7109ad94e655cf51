"""
Kinematic Analyzer

Speed statistics over the raw pointer trajectory.

For every pair of consecutive samples (an "interval"):
- distance = sqrt(dx² + dy²)              (px)
- dt       = (t[i] - t[i-1]) / 1000       (s)
- speed    = distance / dt, or 0 if dt <= 0

Features extracted:
- avg_speed: arithmetic mean of interval speeds (px/s)
- std_dev: population standard deviation of interval speeds (px/s)
- total_distance: sum of interval displacements (px)

Duplicate or backwards timestamps produce a zero speed rather than an
infinite or negative one.
"""

from typing import Dict, Sequence

import numpy as np
from numpy.typing import NDArray

from detector.config import MIN_KINEMATIC_SAMPLES
from detector.schemas.inputs import Sample


class KinematicAnalyzer:
    """Stateless speed/distance feature extractor."""

    def __init__(self, min_samples: int = MIN_KINEMATIC_SAMPLES) -> None:
        self.min_samples = max(2, min_samples)

    def analyze(self, samples: Sequence[Sample]) -> Dict[str, float]:
        """
        Compute speed statistics for an ordered sample sequence.

        Args:
            samples: Samples in arrival order.

        Returns:
            Dict with avg_speed, std_dev and total_distance. All zero when
            fewer than min_samples samples are supplied.
        """
        if len(samples) < self.min_samples:
            return {"avg_speed": 0.0, "std_dev": 0.0, "total_distance": 0.0}

        distances = self._displacements(samples)
        speeds = self._speeds(samples, distances)

        return {
            "avg_speed": float(np.mean(speeds)),
            "std_dev": float(np.std(speeds)),  # ddof=0: population std
            "total_distance": float(np.sum(distances)),
        }

    def interval_speeds(self, samples: Sequence[Sample]) -> NDArray[np.float64]:
        """Per-interval speeds in px/s (empty for fewer than two samples)."""
        if len(samples) < 2:
            return np.zeros(0, dtype=np.float64)
        return self._speeds(samples, self._displacements(samples))

    # =========================================================================
    # VECTOR UTILITIES
    # =========================================================================

    def _displacements(self, samples: Sequence[Sample]) -> NDArray[np.float64]:
        xs = np.array([s.x for s in samples], dtype=np.float64)
        ys = np.array([s.y for s in samples], dtype=np.float64)
        return np.hypot(np.diff(xs), np.diff(ys))

    def _speeds(
        self,
        samples: Sequence[Sample],
        distances: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        ts = np.array([s.t for s in samples], dtype=np.float64)
        dt_ms = np.diff(ts)

        # distance / (dt_ms / 1000), written so integer inputs stay exact
        speeds = np.zeros_like(distances)
        np.divide(distances * 1000.0, dt_ms, out=speeds, where=dt_ms > 0)
        return speeds
