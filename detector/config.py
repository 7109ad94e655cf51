"""
Detector Configuration

Named thresholds for the pointer-movement bot detector. Every constant the
pipeline depends on lives here so it can be tuned per deployment or injected
in tests without touching the analyzers.

Environment variables (all optional):
- SPEED_THRESHOLD: px/s (default: 30)
- STD_DEV_THRESHOLD: px/s (default: 10)
- IDLE_THRESHOLD_MS: ms (default: 500)
- OBSERVATION_WINDOW_SECONDS: s (default: 15)
- REMOTE_TIMEOUT_SECONDS: s (default: 10)
- CONFLICT_POLICY: PREFER_HUMAN | PREFER_LOCAL | PREFER_REMOTE
- REMOTE_CLASSIFIER_URL / REMOTE_CLASSIFIER_API_KEY
- DIAGNOSTICS_KEY / DIAGNOSTICS_TTL_SECONDS
- SESSION_RETENTION_SECONDS: s a finished session stays queryable (default: 300)
"""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Defaults
# =============================================================================

SPEED_THRESHOLD = 30.0          # px/s - average speed above this is suspicious
STD_DEV_THRESHOLD = 10.0        # px/s - speed variation above this is suspicious
IDLE_THRESHOLD_MS = 500.0       # ms - gaps longer than this are idle intervals
OBSERVATION_WINDOW_SECONDS = 15.0

MIN_KINEMATIC_SAMPLES = 2
MIN_GEOMETRY_SAMPLES = 3
MIN_CLASSIFICATION_SAMPLES = 5

REMOTE_TIMEOUT_SECONDS = 10.0

DIAGNOSTICS_KEY = "mouseMovementData"
DIAGNOSTICS_TTL_SECONDS = 1800  # 30 minutes

SESSION_RETENTION_SECONDS = 300.0  # s - finished sessions are evicted after this

REMOTE_PROMPT = (
    "Analyze the attached full mouse movement data. Return a single numeric "
    "classification value: 1 if the movements indicate bot behavior (including "
    "automation using PyAutoGUI) or 0 if they indicate human behavior. Only "
    "return the number 1 or 0 without any extra text."
)


class ConflictPolicy(str, Enum):
    """How to resolve a local/remote disagreement."""
    PREFER_HUMAN = "PREFER_HUMAN"
    PREFER_LOCAL = "PREFER_LOCAL"
    PREFER_REMOTE = "PREFER_REMOTE"


class DetectionConfig(BaseModel):
    """Tunable parameters for one detector deployment."""
    speed_threshold: float = Field(SPEED_THRESHOLD, ge=0.0, description="Average speed threshold (px/s)")
    std_dev_threshold: float = Field(STD_DEV_THRESHOLD, ge=0.0, description="Speed std-dev threshold (px/s)")
    idle_threshold_ms: float = Field(IDLE_THRESHOLD_MS, ge=0.0, description="Idle interval threshold (ms)")
    window_seconds: float = Field(OBSERVATION_WINDOW_SECONDS, gt=0.0, description="Observation window length (s)")

    min_kinematic_samples: int = Field(MIN_KINEMATIC_SAMPLES, ge=2)
    min_geometry_samples: int = Field(MIN_GEOMETRY_SAMPLES, ge=3)
    min_classification_samples: int = Field(MIN_CLASSIFICATION_SAMPLES, ge=2)

    remote_timeout_seconds: float = Field(REMOTE_TIMEOUT_SECONDS, gt=0.0)
    remote_url: Optional[str] = Field(None, description="Remote classifier endpoint")
    remote_api_key: Optional[str] = Field(None, description="Remote classifier API key")
    remote_prompt: str = Field(REMOTE_PROMPT, description="Instruction sent with the samples")

    conflict_policy: ConflictPolicy = Field(ConflictPolicy.PREFER_HUMAN)

    diagnostics_key: str = Field(DIAGNOSTICS_KEY, min_length=1)
    diagnostics_ttl_seconds: int = Field(DIAGNOSTICS_TTL_SECONDS, gt=0)

    session_retention_seconds: float = Field(SESSION_RETENTION_SECONDS, ge=0.0)

    @classmethod
    def from_env(cls) -> "DetectionConfig":
        """
        Build a configuration from environment variables.

        Unset variables fall back to the module defaults. Malformed values
        raise pydantic.ValidationError.
        """
        overrides = {
            "speed_threshold": os.getenv("SPEED_THRESHOLD"),
            "std_dev_threshold": os.getenv("STD_DEV_THRESHOLD"),
            "idle_threshold_ms": os.getenv("IDLE_THRESHOLD_MS"),
            "window_seconds": os.getenv("OBSERVATION_WINDOW_SECONDS"),
            "remote_timeout_seconds": os.getenv("REMOTE_TIMEOUT_SECONDS"),
            "remote_url": os.getenv("REMOTE_CLASSIFIER_URL"),
            "remote_api_key": os.getenv("REMOTE_CLASSIFIER_API_KEY"),
            "conflict_policy": os.getenv("CONFLICT_POLICY"),
            "diagnostics_key": os.getenv("DIAGNOSTICS_KEY"),
            "diagnostics_ttl_seconds": os.getenv("DIAGNOSTICS_TTL_SECONDS"),
            "session_retention_seconds": os.getenv("SESSION_RETENTION_SECONDS"),
        }
        return cls(**{k: v for k, v in overrides.items() if v is not None})
