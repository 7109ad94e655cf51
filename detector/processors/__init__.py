"""
Detector Processors

Public exports for trajectory feature extraction.
"""

from detector.processors.geometry import GeometryTimingAnalyzer, turn_magnitude
from detector.processors.kinematics import KinematicAnalyzer

__all__ = [
    "KinematicAnalyzer",
    "GeometryTimingAnalyzer",
    "turn_magnitude",
]
