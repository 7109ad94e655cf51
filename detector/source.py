"""
Sample Source

Push interface feeding pointer samples to whoever is attached. The session
controller attaches its ingest handler when the window opens and detaches it
when the window closes; anything emitted while nothing is attached is lost.
"""

import logging
import time
from typing import Callable, List, Optional, Protocol

from detector.schemas.inputs import Sample


logger = logging.getLogger(__name__)

SampleHandler = Callable[[Sample], object]


class SampleSource(Protocol):
    def attach(self, handler: SampleHandler) -> None: ...

    def detach(self, handler: SampleHandler) -> None: ...


class PushSampleSource:
    """In-process event source (one per browser session)."""

    def __init__(self) -> None:
        self._handlers: List[SampleHandler] = []

    @property
    def attached(self) -> bool:
        return bool(self._handlers)

    def attach(self, handler: SampleHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def detach(self, handler: SampleHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(
        self,
        x: float,
        y: float,
        t: Optional[float] = None,
        trusted: bool = True
    ) -> Sample:
        """Build a sample (stamped with wall-clock ms when t is omitted) and deliver it."""
        if t is None:
            t = time.time() * 1000.0
        sample = Sample(x=x, y=y, t=t, trusted=trusted)
        self.publish(sample)
        return sample

    def publish(self, sample: Sample) -> None:
        if not self._handlers:
            logger.debug(f"No handler attached, sample dropped: {sample}")
            return
        for handler in list(self._handlers):
            handler(sample)
