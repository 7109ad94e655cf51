"""
Detector Output Schemas

Pydantic V2 models for metrics, verdicts and API responses.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class Classification(int, Enum):
    """Verdict on who is driving the pointer."""
    HUMAN = 0
    BOT = 1
    UNKNOWN = -1


class ReconciliationOutcome(str, Enum):
    """How the final verdict was reached."""
    CONFIRMED = "CONFIRMED"                  # local and remote agree
    DISCREPANCY = "DISCREPANCY"              # disagreement resolved by policy
    DEGRADED = "DEGRADED"                    # remote unavailable, local only
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"  # too few samples for a local verdict


class SessionState(str, Enum):
    """Observation session lifecycle."""
    IDLE = "IDLE"
    COLLECTING = "COLLECTING"
    EVALUATING = "EVALUATING"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


# =============================================================================
# Metrics
# =============================================================================

class MotionMetrics(BaseModel):
    """Features derived from one session's sample buffer."""
    avg_speed: float = Field(0.0, ge=0.0, description="Mean interval speed (px/s)")
    std_dev: float = Field(0.0, ge=0.0, description="Population std-dev of interval speeds (px/s)")
    total_distance: float = Field(0.0, ge=0.0, description="Path length (px)")
    avg_turn_angle: float = Field(0.0, ge=0.0, description="Mean turning magnitude (degrees)")
    idle_ratio: float = Field(0.0, ge=0.0, le=1.0, description="Fraction of idle intervals")
    sample_count: int = Field(0, ge=0, description="Samples in the buffer")


# =============================================================================
# Final Verdict
# =============================================================================

class FinalClassification(BaseModel):
    """Reconciled verdict for one observation session."""
    classification: Classification = Field(..., description="Final verdict")
    local: Classification = Field(..., description="Local rule verdict")
    remote: Optional[Classification] = Field(
        None,
        description="Remote verdict (None when the remote classifier was not consulted)"
    )
    outcome: ReconciliationOutcome = Field(..., description="How the verdict was reached")
    degraded: bool = Field(False, description="True when decided without a remote opinion")
    reasons: List[str] = Field(default_factory=list, description="Signals tripped by the local rule")
    metrics: MotionMetrics = Field(..., description="Features the local rule was applied to")


# =============================================================================
# API Responses
# =============================================================================

class SessionStartedResponse(BaseModel):
    """Response for POST /sessions."""
    session_id: str
    state: SessionState
    window_seconds: float


class SessionStatusResponse(BaseModel):
    """Response for GET /sessions/{session_id}."""
    session_id: str
    state: SessionState
    sample_count: int = Field(..., ge=0)
    result: Optional[FinalClassification] = None
