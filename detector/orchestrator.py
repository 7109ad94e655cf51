"""
Detection Orchestrator

Keeps the live observation sessions of one process and routes HTTP sample
batches into them.

Each session gets:
    - its own SessionController (buffer, analyzers, verdict)
    - its own PushSampleSource (detached when the window closes)
    - a batch high-water mark so batches are applied in send order

Finished sessions stay queryable for session_retention_seconds, then are
evicted from the registry. Their diagnostic dumps expire with the store TTL.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Dict, List, Optional

from detector.config import DetectionConfig
from detector.remote import RemoteClassifierClient
from detector.schemas.inputs import Sample
from detector.schemas.outputs import FinalClassification
from detector.session import SessionController
from detector.source import PushSampleSource
from diagnostics.store import DiagnosticStore


logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class SessionNotFoundError(Exception):
    """Raised when a session id is unknown."""
    pass


class ReplayAttackError(Exception):
    """Raised when a sample batch is duplicated or arrives out of order."""
    pass


# =============================================================================
# Orchestrator
# =============================================================================

class DetectionOrchestrator:
    """In-process registry of observation sessions."""

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        remote: Optional[RemoteClassifierClient] = None,
        store: Optional[DiagnosticStore] = None,
    ) -> None:
        self.config = config or DetectionConfig()
        self.remote = remote
        self.store = store

        self._sessions: Dict[str, SessionController] = {}
        self._sources: Dict[str, PushSampleSource] = {}
        self._last_batch_ids: Dict[str, int] = {}
        self._evictions: Dict[str, asyncio.TimerHandle] = {}

        logger.info("DetectionOrchestrator initialized")

    def __len__(self) -> int:
        return len(self._sessions)

    # -------------------------------------------------------------------------
    # Session Management
    # -------------------------------------------------------------------------

    def start_session(self, session_id: Optional[str] = None) -> SessionController:
        """Create and start a new observation session."""
        if session_id is not None and session_id in self._sessions:
            raise ValueError(f"Session {session_id} already exists")

        source = PushSampleSource()
        controller = SessionController(
            config=self.config,
            remote=self.remote,
            source=source,
            store=self.store,
            session_id=session_id,
        )
        controller.on_complete = partial(self._schedule_eviction, controller)
        controller.start()

        self._sessions[controller.session_id] = controller
        self._sources[controller.session_id] = source
        self._last_batch_ids[controller.session_id] = 0
        return controller

    def get_session(self, session_id: str) -> SessionController:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Unknown session {session_id}") from None

    def discard(self, session_id: str) -> None:
        """Cancel a session and clear its diagnostic dump."""
        controller = self.get_session(session_id)
        controller.cancel()
        controller.buffer.clear_diagnostics()

        self._remove(session_id)
        logger.info(f"Session {session_id} discarded")

    def _schedule_eviction(
        self, controller: SessionController, result: FinalClassification
    ) -> None:
        """on_complete hook: drop the finished session after the retention period."""
        loop = asyncio.get_running_loop()
        self._evictions[controller.session_id] = loop.call_later(
            self.config.session_retention_seconds,
            self._evict,
            controller,
        )

    def _evict(self, controller: SessionController) -> None:
        session_id = controller.session_id
        if self._sessions.get(session_id) is not controller:
            return
        self._remove(session_id)
        logger.info(f"Session {session_id} evicted after retention period")

    def _remove(self, session_id: str) -> None:
        del self._sessions[session_id]
        del self._sources[session_id]
        del self._last_batch_ids[session_id]
        handle = self._evictions.pop(session_id, None)
        if handle is not None:
            handle.cancel()

    # -------------------------------------------------------------------------
    # Sample Ingestion
    # -------------------------------------------------------------------------

    def push_samples(self, session_id: str, batch_id: int, samples: List[Sample]) -> int:
        """
        Deliver one batch to the session's source.

        Returns:
            Number of samples accepted (0 once the window has closed).

        Raises:
            SessionNotFoundError: unknown session.
            ReplayAttackError: batch_id not greater than the last accepted one.
        """
        controller = self.get_session(session_id)
        last_batch_id = self._last_batch_ids[session_id]

        if batch_id <= last_batch_id:
            raise ReplayAttackError(
                f"Duplicate/old sample batch: received {batch_id}, "
                f"last accepted was {last_batch_id}"
            )
        if batch_id > last_batch_id + 1:
            logger.warning(
                f"Sample batch gap for {session_id}: expected {last_batch_id + 1}, "
                f"got {batch_id}"
            )
        self._last_batch_ids[session_id] = batch_id

        source = self._sources[session_id]
        before = controller.sample_count
        for sample in samples:
            source.publish(sample)

        accepted = controller.sample_count - before
        if accepted < len(samples):
            logger.info(
                f"Session {session_id}: {len(samples) - accepted} samples dropped "
                f"({controller.state.value})"
            )
        return accepted

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def evaluate(self, session_id: str) -> FinalClassification:
        """Close the session's window now and await its final classification."""
        controller = self.get_session(session_id)
        controller.close()
        return await controller.wait()

    async def shutdown(self) -> None:
        """Cancel every live session."""
        for controller in self._sessions.values():
            controller.cancel()
        pending = [c.wait() for c in self._sessions.values() if c.result is None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        for handle in self._evictions.values():
            handle.cancel()
        self._evictions.clear()
        self._sessions.clear()
        self._sources.clear()
        self._last_batch_ids.clear()
