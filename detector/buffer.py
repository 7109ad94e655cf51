"""
Sample Buffer

Append-only, arrival-ordered store of pointer samples for a single
observation session. Every append rewrites the full sequence to the
diagnostic store so the session can be replayed later.

The per-append dump is O(n) in the number of samples collected so far.
That is fine for a 15 second window of mousemove events; do not reuse this
buffer for long-lived sessions without batching the writes.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from detector.schemas.inputs import Sample
from diagnostics.store import DiagnosticStore


logger = logging.getLogger(__name__)

_SAMPLE_LIST = TypeAdapter(List[Sample])


class SampleBuffer:
    """
    Ordered sequence of samples owned by one session.

    Samples are kept in arrival order, never sorted by timestamp. A sample
    whose timestamp goes backwards is still accepted; it is only logged.
    """

    def __init__(
        self,
        store: Optional[DiagnosticStore] = None,
        key: str = "mouseMovementData"
    ) -> None:
        self._samples: List[Sample] = []
        self.store = store
        self.key = key

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: Sample) -> None:
        """Add a sample to the tail and persist the accumulated sequence."""
        if self._samples and sample.t < self._samples[-1].t:
            logger.warning(
                f"Non-monotonic timestamp in {self.key}: "
                f"{sample.t} after {self._samples[-1].t} (kept in arrival order)"
            )
        self._samples.append(sample)
        self._persist()

    def snapshot(self) -> Tuple[Sample, ...]:
        """Read-only view of the samples in arrival order."""
        return tuple(self._samples)

    def serialize(self) -> str:
        return json.dumps([s.model_dump() for s in self._samples])

    def clear_diagnostics(self) -> None:
        """Remove the stored copy of this buffer."""
        if self.store is not None:
            self.store.clear(self.key)

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.save(self.key, self.serialize())

    @classmethod
    def replay(cls, store: DiagnosticStore, key: str) -> SampleBuffer:
        """
        Rebuild a buffer from a stored dump.

        The returned buffer is detached from the store so that re-evaluating
        it does not overwrite the original dump. Missing or corrupted dumps
        yield an empty buffer.
        """
        buffer = cls(store=None, key=key)
        raw = store.load(key)
        if raw is None:
            logger.info(f"No diagnostic data stored under {key}")
            return buffer

        try:
            buffer._samples = list(_SAMPLE_LIST.validate_json(raw))
        except ValidationError as e:
            logger.error(f"Corrupted diagnostic data under {key}: {e}")
        return buffer
