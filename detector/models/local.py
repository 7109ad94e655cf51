"""
Local Rule Classifier

Deterministic two-factor threshold rule. No training, no state.

    sample_count < MIN_CLASSIFICATION_SAMPLES  -> UNKNOWN (no opinion)
    avg_speed > SPEED_THRESHOLD
        AND std_dev > STD_DEV_THRESHOLD         -> BOT
    otherwise                                   -> HUMAN

Both signals must fire. A fast but smooth swipe stays HUMAN, and so does
slow jittery motion.
"""

import logging
from typing import List, Optional, Tuple

from detector.config import DetectionConfig
from detector.schemas.outputs import Classification, MotionMetrics


logger = logging.getLogger(__name__)


class LocalClassifier:
    """Threshold rule over MotionMetrics."""

    def __init__(self, config: Optional[DetectionConfig] = None) -> None:
        config = config or DetectionConfig()
        self.speed_threshold = config.speed_threshold
        self.std_dev_threshold = config.std_dev_threshold
        self.min_samples = config.min_classification_samples

    def classify(self, metrics: MotionMetrics) -> Tuple[Classification, List[str]]:
        """
        Classify one session's metrics.

        Returns:
            Tuple of (classification, reasons):
                - classification: HUMAN, BOT or UNKNOWN
                - reasons: signals that fired ("high_speed", "erratic_speed"),
                  or ["insufficient_data"] for UNKNOWN
        """
        if metrics.sample_count < self.min_samples:
            logger.info(
                f"Not enough mouse movement data to evaluate locally "
                f"({metrics.sample_count} < {self.min_samples})"
            )
            return (Classification.UNKNOWN, ["insufficient_data"])

        reasons: List[str] = []
        if metrics.avg_speed > self.speed_threshold:
            reasons.append("high_speed")
        if metrics.std_dev > self.std_dev_threshold:
            reasons.append("erratic_speed")

        classification = Classification.BOT if len(reasons) == 2 else Classification.HUMAN
        logger.info(f"Local classification: {classification.name} (signals={reasons})")
        return (classification, reasons)
