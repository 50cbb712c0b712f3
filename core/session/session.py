"""
Attendance Session - Điều phối một phiên điểm danh
Orders setup (models -> camera -> enrollment -> sampling) and owns teardown.
"""
from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.attendance.tracker import AttendanceTracker
from core.recognition.backend import LabeledEmbedding, RecognitionBackend
from core.recognition.enrollment import EnrollmentLoader, Identity
from core.recognition.matcher import DEFAULT_DISTANCE_THRESHOLD, FaceMatcher
from core.vision.camera_manager import CameraError
from core.vision.pipeline import VisionPipeline
from .sampling import SamplingLoop


class SessionPhase(str, Enum):
    IDLE = "idle"
    LOADING_MODELS = "loading_models"
    STARTING_CAMERA = "starting_camera"
    ENROLLING = "enrolling"
    READY = "ready"
    NO_IDENTITIES = "no_identities"
    SETUP_FAILED = "setup_failed"
    ENDED = "ended"
    STOPPED = "stopped"


PHASE_MESSAGES = {
    SessionPhase.IDLE: "Initializing Webcam...",
    SessionPhase.LOADING_MODELS: "Loading AI Models...",
    SessionPhase.STARTING_CAMERA: "Starting Webcam...",
    SessionPhase.ENROLLING: "Learning Student Faces...",
    SessionPhase.READY: "Ready!",
    SessionPhase.NO_IDENTITIES: "Error: No student faces learned.",
    SessionPhase.SETUP_FAILED: "Webcam error. Please allow camera access.",
    SessionPhase.ENDED: "Webcam stream ended.",
    SessionPhase.STOPPED: "Session stopped.",
}

TERMINAL_PHASES = {SessionPhase.NO_IDENTITIES, SessionPhase.SETUP_FAILED}

PhaseListener = Callable[[SessionPhase, str], None]


class AttendanceSession:
    """Một phiên điểm danh gắn với một luồng camera.

    The tracker outlives teardown so the final roster can still be read and
    exported after ``stop()``.
    """

    def __init__(
        self,
        *,
        roster: Sequence[Identity],
        backend: RecognitionBackend,
        stream,
        tracker: Optional[AttendanceTracker] = None,
        enroller: Optional[EnrollmentLoader] = None,
        distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
        interval_ms: int = 200,
        detection_scale: float = 0.5,
        display_size: Optional[Tuple[int, int]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.roster: List[Identity] = list(roster)
        self.backend = backend
        self.stream = stream
        self.tracker = tracker or AttendanceTracker([identity.name for identity in self.roster])
        self.enroller = enroller or EnrollmentLoader(backend)
        self.distance_threshold = distance_threshold
        self.interval_ms = interval_ms
        self.pipeline = VisionPipeline(stream, detection_scale=detection_scale)
        self.display_size = display_size
        self.logger = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._resources = ExitStack()
        self._loop: Optional[SamplingLoop] = None
        self._labeled: Optional[List[LabeledEmbedding]] = None
        self._models_loaded = False
        self._active = False
        self._phase = SessionPhase.IDLE
        self._error: Optional[str] = None
        self._phase_listeners: List[PhaseListener] = []

    # ------------------------------------------------------------------
    # Phase helpers
    def add_phase_listener(self, listener: PhaseListener) -> None:
        self._phase_listeners.append(listener)

    def _set_phase(self, phase: SessionPhase, error: Optional[str] = None) -> None:
        with self._lock:
            self._phase = phase
            if error is not None:
                self._error = error
        message = PHASE_MESSAGES[phase]
        self.logger.info(f"[Session] {message}")
        for listener in list(self._phase_listeners):
            try:
                listener(phase, message)
            except Exception as exc:
                self.logger.error(f"[Session] Phase listener failed: {exc}")

    def _fail(self, phase: SessionPhase, error: str) -> bool:
        self.logger.error(f"[Session] ❌ {error}")
        self._set_phase(phase, error=error)
        return False

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_ready(self) -> bool:
        return self._phase is SessionPhase.READY

    @property
    def enrolled_labels(self) -> List[str]:
        return [item.label for item in (self._labeled or [])]

    # ------------------------------------------------------------------
    # Setup
    def setup(self) -> bool:
        """Load models, open the camera and start sampling once the stream plays."""
        with self._lock:
            if self._phase in TERMINAL_PHASES:
                self.logger.warning(f"[Session] Cannot set up again after {self._phase.value}")
                return False
            if self._active:
                return self.is_ready
            self._active = True
            self._resources = ExitStack()
            self._resources.callback(self._reset_active)

            if not self._models_loaded:
                self._set_phase(SessionPhase.LOADING_MODELS)
                try:
                    loaded = bool(self.backend.load_models())
                except Exception as exc:
                    self.logger.error(f"[Session] Model loading raised: {exc}", exc_info=True)
                    loaded = False
                if not loaded:
                    self._resources.close()
                    return self._fail(SessionPhase.SETUP_FAILED, "Could not load recognition models")
                self._models_loaded = True

            self._set_phase(SessionPhase.STARTING_CAMERA)
            self.stream.add_listener('play', self._on_play)
            self._resources.callback(self.stream.remove_listener, 'play', self._on_play)
            self.stream.add_listener('ended', self._on_ended)
            self._resources.callback(self.stream.remove_listener, 'ended', self._on_ended)
            self._resources.callback(self.stream.end)
            self._resources.callback(self._cancel_loop)

            already_playing = self.stream.playing

        if already_playing:
            # Stream đã chạy từ trước: sự kiện 'play' sẽ không phát lại
            self._on_play()
            return self.is_ready

        try:
            self.stream.play()
        except CameraError as exc:
            self._resources.close()
            return self._fail(SessionPhase.SETUP_FAILED, f"Camera unavailable: {exc}")
        return self.is_ready

    def _reset_active(self) -> None:
        with self._lock:
            self._active = False

    def _on_play(self) -> None:
        with self._lock:
            if not self._active:
                return
            if not self._models_loaded:
                self.logger.warning("[Session] Stream playing before models are loaded; not ready")
                return
            labeled = self._labeled

        if labeled is None:
            self._set_phase(SessionPhase.ENROLLING)
            labeled = self.enroller.enroll(self.roster)

        with self._lock:
            # Phiên đã bị dừng trong lúc đang học khuôn mặt
            if not self._active:
                return
            self._labeled = labeled
            if not labeled:
                self._fail(SessionPhase.NO_IDENTITIES, "No student faces learned")
                return

            display_size = self.display_size or self.stream.dimensions()
            self._cancel_loop()
            loop = SamplingLoop(
                stream=self.stream,
                pipeline=self.pipeline,
                backend=self.backend,
                matcher=FaceMatcher(labeled, self.distance_threshold),
                tracker=self.tracker,
                display_size=display_size,
                interval_ms=self.interval_ms,
                logger=self.logger,
            )
            self._loop = loop
            loop.start()
            self._set_phase(SessionPhase.READY)

    def _on_ended(self) -> None:
        with self._lock:
            if not self._active:
                return
        self._cancel_loop()
        with self._lock:
            terminal = self._phase in TERMINAL_PHASES
        if not terminal:
            self._set_phase(SessionPhase.ENDED)

    def _cancel_loop(self) -> None:
        with self._lock:
            loop, self._loop = self._loop, None
        if loop is not None:
            loop.stop()

    # ------------------------------------------------------------------
    # Controls
    @property
    def active(self) -> bool:
        return self._active

    def pause(self) -> bool:
        """Pause the stream; returns False when no session is running."""
        with self._lock:
            if not self._active:
                return False
        self.stream.pause()
        return True

    def resume(self) -> bool:
        """Resume (or reopen) the stream; returns False when no session is running."""
        with self._lock:
            if not self._active:
                return False
        self.stream.play()
        return True

    def stop(self) -> None:
        """Stop sampling and release the camera; attendance data is kept."""
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._resources.close()
        with self._lock:
            terminal = self._phase in TERMINAL_PHASES
        if not terminal:
            self._set_phase(SessionPhase.STOPPED)

    def __enter__(self) -> "AttendanceSession":
        self.setup()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Queries
    @property
    def loop(self) -> Optional[SamplingLoop]:
        return self._loop

    def latest_frame(self) -> Optional[bytes]:
        loop = self._loop
        return loop.latest_jpeg() if loop is not None else None

    def status(self) -> Dict[str, object]:
        with self._lock:
            loop = self._loop
            return {
                'phase': self._phase.value,
                'message': PHASE_MESSAGES[self._phase],
                'error': self._error,
                'ready': self._phase is SessionPhase.READY,
                'stream': self.stream.state.value,
                'roster_size': len(self.roster),
                'enrolled': self.enrolled_labels,
                'sampling': loop.stats().to_dict() if loop is not None else None,
            }
