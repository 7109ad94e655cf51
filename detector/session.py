"""
Observation Session Controller

Owns one observation window and runs the detection pipeline once it closes.

Lifecycle:
    IDLE → COLLECTING → EVALUATING → DONE

    start()       IDLE → COLLECTING: attach the sample source, arm the window
    window expiry COLLECTING → EVALUATING: detach the source, drop late samples
    evaluation    EVALUATING → DONE: analyzers → local rule → remote verdict
                  (awaited with a timeout) → reconciliation
    cancel()      any state but DONE → CANCELLED: detach, no verdict

Pipeline:
    Samples → SampleBuffer → (KinematicAnalyzer, GeometryTimingAnalyzer)
            → LocalClassifier → ReconciliationPolicy ← RemoteClassifier

An evaluation that raises still reaches DONE with an UNKNOWN verdict.

A controller runs exactly one session. DONE and CANCELLED are terminal.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Callable, List, Optional

from detector.buffer import SampleBuffer
from detector.config import DetectionConfig
from detector.models import LocalClassifier, ReconciliationPolicy
from detector.processors import GeometryTimingAnalyzer, KinematicAnalyzer
from detector.remote import RemoteClassifierClient
from detector.schemas.inputs import Sample
from detector.schemas.outputs import (
    Classification,
    FinalClassification,
    MotionMetrics,
    ReconciliationOutcome,
    SessionState,
)
from detector.source import SampleSource
from diagnostics.store import DiagnosticStore


logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class SessionStateError(Exception):
    """Raised when a lifecycle operation is invalid in the current state."""
    pass


# =============================================================================
# Controller
# =============================================================================

class SessionController:
    """
    Single-use observation session.

    Must be started from inside a running event loop; the window timer and
    the evaluation run as one asyncio task.
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        remote: Optional[RemoteClassifierClient] = None,
        source: Optional[SampleSource] = None,
        store: Optional[DiagnosticStore] = None,
        session_id: Optional[str] = None,
        on_complete: Optional[Callable[[FinalClassification], None]] = None,
    ) -> None:
        self.config = config or DetectionConfig()
        self.session_id = session_id or uuid.uuid4().hex
        self.remote = remote
        self.source = source
        self.on_complete = on_complete

        self.buffer = SampleBuffer(
            store=store,
            key=f"{self.config.diagnostics_key}:{self.session_id}",
        )
        self.kinematics = KinematicAnalyzer(self.config.min_kinematic_samples)
        self.geometry = GeometryTimingAnalyzer(
            idle_threshold_ms=self.config.idle_threshold_ms,
            min_samples=self.config.min_geometry_samples,
        )
        self.classifier = LocalClassifier(self.config)
        self.policy = ReconciliationPolicy(self.config.conflict_policy)

        self._state = SessionState.IDLE
        self._started_at: Optional[float] = None
        self._close_requested: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._result: Optional[FinalClassification] = None

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def result(self) -> Optional[FinalClassification]:
        """Final classification once DONE, else None."""
        return self._result

    @property
    def sample_count(self) -> int:
        return len(self.buffer)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Open the observation window (IDLE → COLLECTING)."""
        if self._state != SessionState.IDLE:
            raise SessionStateError(
                f"Session {self.session_id} cannot start from {self._state.value}"
            )

        loop = asyncio.get_running_loop()
        self._close_requested = asyncio.Event()
        self._started_at = time.monotonic()
        self._state = SessionState.COLLECTING

        if self.source is not None:
            self.source.attach(self.ingest)

        self._task = loop.create_task(self._run())
        logger.info(
            f"Session {self.session_id} collecting for {self.config.window_seconds:.1f}s"
        )

    def ingest(self, sample: Sample) -> bool:
        """
        Sample handler. Returns False (sample dropped) outside COLLECTING.
        """
        if self._state != SessionState.COLLECTING:
            logger.debug(
                f"Session {self.session_id} dropped sample in {self._state.value}: {sample}"
            )
            return False
        self.buffer.append(sample)
        return True

    def close(self) -> None:
        """Expire the observation window now instead of waiting for the timer."""
        if self._state == SessionState.IDLE:
            raise SessionStateError(f"Session {self.session_id} was never started")
        if self._state == SessionState.CANCELLED:
            raise SessionStateError(f"Session {self.session_id} was cancelled")
        if self._close_requested is not None:
            self._close_requested.set()

    async def wait(self) -> FinalClassification:
        """Await the final classification."""
        if self._task is None:
            raise SessionStateError(f"Session {self.session_id} was never started")
        return await asyncio.shield(self._task)

    def cancel(self) -> None:
        """Abort the session without a verdict. No-op once DONE."""
        if self._state in (SessionState.DONE, SessionState.CANCELLED):
            return
        self._state = SessionState.CANCELLED
        self._detach()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info(f"Session {self.session_id} cancelled ({self.sample_count} samples)")

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _run(self) -> FinalClassification:
        try:
            await asyncio.wait_for(
                self._close_requested.wait(),
                timeout=self.config.window_seconds,
            )
        except asyncio.TimeoutError:
            pass

        self._close_window()
        try:
            result = await self._evaluate()
        except Exception as e:
            logger.error(f"Session {self.session_id} evaluation failed: {e}")
            result = self._failed_result()

        self._result = result
        self._state = SessionState.DONE
        logger.info(
            f"Session {self.session_id} final classification: "
            f"{result.classification.name} ({result.outcome.value})"
        )

        if self.on_complete is not None:
            self.on_complete(result)
        return result

    def _close_window(self) -> None:
        self._state = SessionState.EVALUATING
        self._detach()
        elapsed = time.monotonic() - (self._started_at or time.monotonic())
        logger.info(
            f"Session {self.session_id} stopped mouse tracking after {elapsed:.1f}s "
            f"({self.sample_count} samples)"
        )

    def _detach(self) -> None:
        if self.source is not None:
            self.source.detach(self.ingest)

    def compute_metrics(self) -> MotionMetrics:
        """Run both analyzers over the current buffer."""
        samples = self.buffer.snapshot()
        kinematics = self.kinematics.analyze(samples)
        geometry = self.geometry.analyze(samples)
        return MotionMetrics(**kinematics, **geometry, sample_count=len(samples))

    async def _evaluate(self) -> FinalClassification:
        metrics = self.compute_metrics()
        self._log_metrics(metrics)

        local, reasons = self.classifier.classify(metrics)
        if local == Classification.UNKNOWN:
            logger.info(f"Session {self.session_id}: not enough data for remote evaluation")
            return FinalClassification(
                classification=Classification.UNKNOWN,
                local=local,
                remote=None,
                outcome=ReconciliationOutcome.INSUFFICIENT_DATA,
                degraded=True,
                reasons=reasons,
                metrics=metrics,
            )

        remote = await self._classify_remote()
        final, outcome = self.policy.decide(local, remote)
        return FinalClassification(
            classification=final,
            local=local,
            remote=remote,
            outcome=outcome,
            degraded=outcome == ReconciliationOutcome.DEGRADED,
            reasons=reasons,
            metrics=metrics,
        )

    def _failed_result(self) -> FinalClassification:
        return FinalClassification(
            classification=Classification.UNKNOWN,
            local=Classification.UNKNOWN,
            remote=None,
            outcome=ReconciliationOutcome.INSUFFICIENT_DATA,
            degraded=True,
            reasons=["evaluation_failed"],
            metrics=MotionMetrics(sample_count=self.sample_count),
        )

    async def _classify_remote(self) -> Classification:
        if self.remote is None:
            logger.warning(f"Session {self.session_id}: no remote classifier configured")
            return Classification.UNKNOWN

        samples: List[Sample] = list(self.buffer.snapshot())
        try:
            return await asyncio.wait_for(
                self.remote.classify(samples),
                timeout=self.config.remote_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Session {self.session_id}: remote classifier timed out after "
                f"{self.config.remote_timeout_seconds:.1f}s"
            )
        except Exception as e:
            logger.error(f"Session {self.session_id}: remote classifier failed: {e}")
        return Classification.UNKNOWN

    def _log_metrics(self, metrics: MotionMetrics) -> None:
        logger.info(
            f"Session {self.session_id} metrics: "
            f"points={metrics.sample_count} "
            f"avg_speed={metrics.avg_speed:.2f}px/s "
            f"std_dev={metrics.std_dev:.2f} "
            f"distance={metrics.total_distance:.2f}px "
            f"turn={metrics.avg_turn_angle:.2f}deg "
            f"idle={metrics.idle_ratio:.2f}"
        )
