"""
Detector Schemas

Public exports for input and output Pydantic models.
"""

# Input schemas
from detector.schemas.inputs import (
    RemoteClassificationRequest,
    Sample,
    SampleBatchPayload,
    StartSessionPayload,
)

# Output schemas
from detector.schemas.outputs import (
    Classification,
    FinalClassification,
    MotionMetrics,
    ReconciliationOutcome,
    SessionStartedResponse,
    SessionState,
    SessionStatusResponse,
)

__all__ = [
    # Input
    "Sample",
    "StartSessionPayload",
    "SampleBatchPayload",
    "RemoteClassificationRequest",
    # Output
    "Classification",
    "ReconciliationOutcome",
    "SessionState",
    "MotionMetrics",
    "FinalClassification",
    "SessionStartedResponse",
    "SessionStatusResponse",
]
