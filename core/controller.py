"""
Pipeline controller: owns the capture session, the detector and the tick scheduler.
Each tick grabs one frame, detects faces, annotates and publishes to the display sink.

States: IDLE -> RUNNING -> STOPPING -> IDLE. All transitions happen under one lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from core.capture import FrameGrabber
from core.config import PipelineConfig, parse_source_kind
from core.errors import EndOfStreamError, GrabError
from core.models import (
    CaptureSession,
    PipelineState,
    PublishedFrame,
    SourceKind,
    label_detections,
)
from core.renderer import DisplaySink, Renderer
from core.scheduler import SingleFlightScheduler
from core.sources import PlatformId, platform_id, resolve_source
from core.utils import TickStats
from detectors.base import FaceDetectorBase

logger = logging.getLogger(__name__)


class PipelineController:
    """Grab -> detect -> annotate -> publish, one tick at a time on a background thread."""

    def __init__(
        self,
        config: PipelineConfig,
        sink: DisplaySink,
        detector: FaceDetectorBase | None = None,
        grabber: FrameGrabber | None = None,
        renderer: Renderer | None = None,
        platform: PlatformId | str | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_state_changed: Callable[[PipelineState], None] | None = None,
    ) -> None:
        self._config = config
        self._sink = sink
        self._detector = detector
        self._grabber = grabber or FrameGrabber(stream_timeout_ms=config.stream_timeout_ms)
        self._renderer = renderer or Renderer()
        self._platform = platform_id(platform)
        self._on_error = on_error
        self._on_state_changed = on_state_changed
        self._lock = threading.RLock()
        self._stage_lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = PipelineState.IDLE
        self._scheduler: SingleFlightScheduler | None = None
        self._stats = TickStats()
        self._frame_index = 0
        self._disposed = False

    # --- lifecycle ---

    def start(self, kind: SourceKind | str | None = None) -> bool:
        """
        Open the source and begin ticking. Returns False (no-op) unless IDLE.
        Configuration and open errors propagate; the state stays IDLE.
        """
        with self._lock:
            if self._disposed:
                logger.warning("start() ignored: pipeline disposed")
                return False
            if self._state is not PipelineState.IDLE:
                logger.debug("start() ignored: pipeline is %s", self._state.value)
                return False
            kind = parse_source_kind(kind if kind is not None else self._config.source_kind)
            source = resolve_source(kind, self._platform, self._config)
            self._grabber.open(
                source, self._config.width, self._config.height, self._config.fps
            )
            self._frame_index = 0
            self._stats.reset()
            self._scheduler = SingleFlightScheduler(
                self.tick, self._config.tick_interval_s, name="face-pipeline"
            )
            self._set_state(PipelineState.RUNNING)
            self._scheduler.start()
        logger.info(
            "Started %s capture from %s%s",
            kind.value,
            source.locator,
            "" if self._detector is not None else " (detection disabled)",
        )
        return True

    def stop(self) -> None:
        """Cancel ticking, wait (bounded) for an in-flight tick, release the capture."""
        with self._lock:
            state = self._state
            if state is PipelineState.IDLE:
                return
            scheduler = self._scheduler
            if state is PipelineState.RUNNING:
                self._set_state(PipelineState.STOPPING)
        if state is PipelineState.STOPPING:
            # Someone else is tearing the session down
            if scheduler is None or not scheduler.in_worker_thread():
                self._idle.wait(self._config.stop_timeout_s)
            return
        self._teardown(scheduler)
        logger.info("Capture stopped")

    def dispose(self) -> None:
        """Stop and drop the detector. The controller cannot be restarted afterwards."""
        self.stop()
        with self._lock:
            self._disposed = True
            detector, self._detector = self._detector, None
        if detector is not None:
            try:
                detector.close()
            except Exception:
                logger.exception("Failed to close detector")

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        return self._idle.wait(timeout)

    # --- tick ---

    def tick(self) -> None:
        """One grab -> detect -> annotate -> publish pass. No-op unless RUNNING."""
        with self._lock:
            if self._state is not PipelineState.RUNNING:
                return
            # The session this tick belongs to; a later start() replaces it
            scheduler = self._scheduler
        timestamp_s = self._stats.begin()
        try:
            frame = self._grabber.grab_one()
            # Only one tick at a time may use the detector and the sink
            with self._stage_lock:
                if not self._owns_session(scheduler):
                    logger.debug("Dropping frame grabbed after its session stopped")
                    return
                detector = self._detector
                boxes = detector.detect(frame) if detector is not None else []
                detections = label_detections(boxes)
                annotated = self._renderer.annotate(frame, detections)
                fps, latency_ms, rolling_ms = self._stats.end()
                published = PublishedFrame(
                    image=annotated,
                    detections=detections,
                    index=self._frame_index,
                    timestamp_s=timestamp_s,
                    fps=fps,
                    latency_ms=latency_ms,
                    rolling_avg_ms=rolling_ms,
                    detection_enabled=detector is not None,
                )
                if not self._owns_session(scheduler):
                    logger.debug("Dropping frame %d: session stopped", published.index)
                    return
                self._frame_index += 1
                self._renderer.publish(published, self._sink)
        except Exception as e:  # noqa: BLE001
            self._end_session(scheduler, e)

    def _owns_session(self, scheduler: SingleFlightScheduler | None) -> bool:
        with self._lock:
            return self._scheduler is scheduler and self._state is PipelineState.RUNNING

    def _end_session(self, scheduler: SingleFlightScheduler | None, error: Exception) -> None:
        """Called from the worker when a tick cannot continue its session."""
        with self._lock:
            running = self._scheduler is scheduler and self._state is PipelineState.RUNNING
            if running:
                self._set_state(PipelineState.STOPPING)
        if not running:
            # stop() already ended this session, e.g. by releasing a capture mid-read
            logger.debug("Ignoring %s from a stopped session: %s", type(error).__name__, error)
            return
        if isinstance(error, EndOfStreamError):
            logger.info("%s; ending session after %d frames", error, self._frame_index)
        else:
            if isinstance(error, GrabError):
                logger.error("Frame grab failed: %s", error)
            else:
                logger.error("Frame processing failed", exc_info=error)
            self._report_error(error)
        self._teardown(scheduler)

    def _teardown(self, scheduler: SingleFlightScheduler | None) -> None:
        if scheduler is not None:
            scheduler.cancel()
            if not scheduler.join(self._config.stop_timeout_s):
                logger.warning(
                    "Tick still running after %.1fs; releasing capture anyway",
                    self._config.stop_timeout_s,
                )
        try:
            self._grabber.close()
        except Exception:
            logger.exception("Failed to release capture")
        with self._lock:
            self._scheduler = None
            self._set_state(PipelineState.IDLE)

    # --- state ---

    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        if state is not PipelineState.IDLE:
            self._idle.clear()
        logger.debug("Pipeline state -> %s", state.value)
        if self._on_state_changed is not None:
            try:
                self._on_state_changed(state)
            except Exception:
                logger.exception("State change listener failed")
        # Waiters wake only after listeners have seen IDLE
        if state is PipelineState.IDLE:
            self._idle.set()

    def _report_error(self, error: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Error listener failed")

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PipelineState.RUNNING

    @property
    def detection_enabled(self) -> bool:
        return self._detector is not None

    @property
    def frames_processed(self) -> int:
        return self._frame_index

    @property
    def session(self) -> CaptureSession | None:
        return self._grabber.session
