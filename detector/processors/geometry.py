"""
Geometry / Timing Analyzer

Path-shape and dwell-time features over the raw pointer trajectory.

Turning angle:
    Each interval with non-zero displacement has a heading atan2(dy, dx) in
    degrees. The turn between two consecutive headings is the undirected
    magnitude |h - h_prev| folded into [0, 180] (a 190° difference is a 170°
    turn the other way). Zero-displacement intervals are skipped and do not
    move the reference heading.

Idle ratio:
    An interval is idle when its elapsed time exceeds the idle threshold,
    whatever the displacement. idle_ratio = idle intervals / all intervals.
"""

import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from detector.config import IDLE_THRESHOLD_MS, MIN_GEOMETRY_SAMPLES
from detector.schemas.inputs import Sample


def turn_magnitude(previous_heading: float, heading: float) -> float:
    """Undirected turn in degrees between two headings, in [0, 180]."""
    diff = abs(heading - previous_heading)
    if diff > 180.0:
        diff = 360.0 - diff
    return diff


class GeometryTimingAnalyzer:
    """Stateless turning-angle and idle-time feature extractor."""

    def __init__(
        self,
        idle_threshold_ms: float = IDLE_THRESHOLD_MS,
        min_samples: int = MIN_GEOMETRY_SAMPLES
    ) -> None:
        self.idle_threshold_ms = idle_threshold_ms
        self.min_samples = max(3, min_samples)

    def analyze(self, samples: Sequence[Sample]) -> Dict[str, float]:
        """
        Compute avg_turn_angle (degrees) and idle_ratio.

        Returns zeros for both when fewer than min_samples samples are given.
        """
        if len(samples) < self.min_samples:
            return {"avg_turn_angle": 0.0, "idle_ratio": 0.0}

        turns = self.turn_angles(samples)
        return {
            "avg_turn_angle": sum(turns) / len(turns) if turns else 0.0,
            "idle_ratio": self.idle_ratio(samples),
        }

    def turn_angles(self, samples: Sequence[Sample]) -> List[float]:
        """Turn magnitudes between consecutive moving intervals."""
        turns: List[float] = []
        previous: Optional[float] = None

        for i in range(1, len(samples)):
            dx = samples[i].x - samples[i - 1].x
            dy = samples[i].y - samples[i - 1].y
            if dx == 0 and dy == 0:
                continue

            heading = math.degrees(math.atan2(dy, dx))
            if previous is not None:
                turns.append(turn_magnitude(previous, heading))
            previous = heading

        return turns

    def idle_ratio(self, samples: Sequence[Sample]) -> float:
        if len(samples) < 2:
            return 0.0
        dt_ms = np.diff(np.array([s.t for s in samples], dtype=np.float64))
        idle = int(np.count_nonzero(dt_ms > self.idle_threshold_ms))
        return idle / len(dt_ms)
