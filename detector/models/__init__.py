"""
Detector Models

Rule-based local verdict and two-source reconciliation.
"""

from detector.models.local import LocalClassifier
from detector.models.reconciliation import ReconciliationPolicy

__all__ = [
    "LocalClassifier",
    "ReconciliationPolicy",
]
