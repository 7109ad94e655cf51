"""
Pointer Bot Detector

Central module exports for the pointer-movement bot detection pipeline.
"""

from detector.orchestrator import DetectionOrchestrator
from detector.session import SessionController

__all__ = [
    "DetectionOrchestrator",
    "SessionController",
]
