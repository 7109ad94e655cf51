"""
Schema and Configuration Tests

Validation rules of the Pydantic models and environment-driven config.
"""

import pytest
from pydantic import ValidationError

from detector.config import ConflictPolicy, DetectionConfig
from detector.schemas.inputs import RemoteClassificationRequest, Sample, SampleBatchPayload
from detector.schemas.outputs import Classification, MotionMetrics


# =============================================================================
# Input Schemas
# =============================================================================

class TestSample:

    def test_trusted_defaults_to_true(self):
        assert Sample(x=1, y=2, t=3).trusted is True

    def test_missing_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            Sample(x=1, y=2)

    def test_frozen(self):
        sample = Sample(x=1, y=2, t=3)
        with pytest.raises(ValidationError):
            sample.t = 4

    @pytest.mark.parametrize("field", ["x", "y", "t"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_values_rejected(self, field, value):
        values = {"x": 1.0, "y": 2.0, "t": 3.0, field: value}
        with pytest.raises(ValidationError):
            Sample(**values)


class TestSampleBatchPayload:

    def test_batch_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            SampleBatchPayload(batch_id=0, samples=[])

    def test_parses_samples(self):
        payload = SampleBatchPayload.model_validate(
            {"batch_id": 1, "samples": [{"x": 1, "y": 2, "t": 3, "trusted": False}]}
        )
        assert payload.samples[0].trusted is False


class TestRemoteRequest:

    def test_serializes_mouse_data_alias(self):
        request = RemoteClassificationRequest(prompt="p", mouse_data=[Sample(x=1, y=2, t=3)])
        dumped = request.model_dump(by_alias=True)

        assert set(dumped) == {"prompt", "mouseData"}
        assert dumped["mouseData"][0]["t"] == 3.0


# =============================================================================
# Output Schemas
# =============================================================================

class TestOutputs:

    def test_classification_values(self):
        assert Classification.HUMAN == 0
        assert Classification.BOT == 1
        assert Classification(1) is Classification.BOT

    def test_metrics_default_to_zero(self):
        metrics = MotionMetrics()
        assert metrics.avg_speed == 0.0
        assert metrics.idle_ratio == 0.0

    def test_idle_ratio_bounded(self):
        with pytest.raises(ValidationError):
            MotionMetrics(idle_ratio=1.5)

    def test_negative_speed_rejected(self):
        with pytest.raises(ValidationError):
            MotionMetrics(avg_speed=-1.0)


# =============================================================================
# Configuration
# =============================================================================

class TestDetectionConfig:

    def test_defaults(self):
        config = DetectionConfig()
        assert config.speed_threshold == 30.0
        assert config.std_dev_threshold == 10.0
        assert config.idle_threshold_ms == 500.0
        assert config.window_seconds == 15.0
        assert config.min_classification_samples == 5
        assert config.conflict_policy == ConflictPolicy.PREFER_HUMAN
        assert config.remote_url is None
        assert config.session_retention_seconds == 300.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SPEED_THRESHOLD", "45.5")
        monkeypatch.setenv("OBSERVATION_WINDOW_SECONDS", "3")
        monkeypatch.setenv("CONFLICT_POLICY", "PREFER_LOCAL")
        monkeypatch.setenv("REMOTE_CLASSIFIER_URL", "https://classifier.test")
        monkeypatch.setenv("SESSION_RETENTION_SECONDS", "60")

        config = DetectionConfig.from_env()

        assert config.speed_threshold == 45.5
        assert config.window_seconds == 3.0
        assert config.conflict_policy == ConflictPolicy.PREFER_LOCAL
        assert config.remote_url == "https://classifier.test"
        assert config.std_dev_threshold == 10.0
        assert config.session_retention_seconds == 60.0

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("OBSERVATION_WINDOW_SECONDS", "soon")
        with pytest.raises(ValidationError):
            DetectionConfig.from_env()
