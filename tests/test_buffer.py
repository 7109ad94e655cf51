"""
Sample Buffer Tests

Arrival ordering, the per-append diagnostic dump and offline replay.
"""

import json

import pytest

from detector.buffer import SampleBuffer
from tests.conftest import make_sample, make_samples


class TestAppendAndSnapshot:

    def test_append_preserves_arrival_order(self):
        buffer = SampleBuffer()
        samples = make_samples([(0, 0, 300), (1, 1, 100), (2, 2, 200)])
        for s in samples:
            buffer.append(s)

        # Not re-sorted by timestamp
        assert [s.t for s in buffer.snapshot()] == [300, 100, 200]
        assert len(buffer) == 3

    def test_snapshot_is_read_only(self):
        buffer = SampleBuffer()
        buffer.append(make_sample(0, 0, 0))
        snapshot = buffer.snapshot()

        assert isinstance(snapshot, tuple)
        buffer.append(make_sample(1, 1, 1))
        assert len(snapshot) == 1

    def test_no_deduplication(self):
        buffer = SampleBuffer()
        sample = make_sample(5, 5, 10)
        buffer.append(sample)
        buffer.append(sample)
        assert len(buffer) == 2

    def test_samples_are_immutable(self):
        sample = make_sample(5, 5, 10)
        with pytest.raises(Exception):
            sample.x = 6

    def test_non_monotonic_timestamp_is_logged(self, caplog):
        buffer = SampleBuffer(key="k")
        buffer.append(make_sample(0, 0, 100))
        with caplog.at_level("WARNING"):
            buffer.append(make_sample(1, 1, 50))
        assert "Non-monotonic timestamp" in caplog.text
        assert len(buffer) == 2


class TestDiagnosticDump:

    def test_every_append_rewrites_full_sequence(self, store):
        buffer = SampleBuffer(store=store, key="mouseMovementData:s1")

        buffer.append(make_sample(1, 2, 10))
        assert len(json.loads(store.load("mouseMovementData:s1"))) == 1

        buffer.append(make_sample(3, 4, 20, trusted=False))
        dumped = json.loads(store.load("mouseMovementData:s1"))
        assert dumped == [
            {"x": 1.0, "y": 2.0, "t": 10.0, "trusted": True},
            {"x": 3.0, "y": 4.0, "t": 20.0, "trusted": False},
        ]

    def test_clear_diagnostics(self, store):
        buffer = SampleBuffer(store=store, key="k")
        buffer.append(make_sample(1, 2, 10))
        buffer.clear_diagnostics()

        assert store.load("k") is None
        assert len(buffer) == 1


class TestReplay:

    def test_replay_round_trip(self, store, erratic_speed_samples):
        buffer = SampleBuffer(store=store, key="k")
        for s in erratic_speed_samples:
            buffer.append(s)

        replayed = SampleBuffer.replay(store, "k")
        assert list(replayed.snapshot()) == erratic_speed_samples
        assert replayed.store is None

    def test_replay_missing_key(self, store):
        assert len(SampleBuffer.replay(store, "missing")) == 0

    def test_replay_corrupted_dump(self, store):
        store.save("k", "{not json")
        assert len(SampleBuffer.replay(store, "k")) == 0
