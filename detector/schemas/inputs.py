"""
Detector Input Schemas

Pydantic V2 models for:
- Pointer samples captured by the browser during the observation window
- HTTP ingestion payloads (session start, sample batches)
- The request body sent to the remote classifier
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Pointer Samples
# =============================================================================

class Sample(BaseModel):
    """Single pointer position observed by the sample source."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    x: float = Field(..., description="X coordinate (client px)")
    y: float = Field(..., description="Y coordinate (client px)")
    t: float = Field(..., description="Event timestamp in milliseconds")
    trusted: bool = Field(True, description="False if the event was synthesized by script")


# =============================================================================
# HTTP Ingestion Payloads
# =============================================================================

class StartSessionPayload(BaseModel):
    """Optional body for POST /sessions."""
    session_id: Optional[str] = Field(
        None,
        min_length=1,
        max_length=128,
        description="Client-chosen session identifier (generated when omitted)"
    )


class SampleBatchPayload(BaseModel):
    """
    Batch of samples pushed by the browser while the window is open.
    Batches must be sent with strictly increasing batch_id.
    """
    batch_id: int = Field(..., ge=1, description="Monotonic batch counter")
    samples: List[Sample] = Field(..., description="Samples in arrival order")


# =============================================================================
# Remote Classifier Request
# =============================================================================

class RemoteClassificationRequest(BaseModel):
    """Body POSTed to the remote classifier."""
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., description="Instruction for the remote model")
    mouse_data: List[Sample] = Field(..., alias="mouseData", description="Full sample sequence")
