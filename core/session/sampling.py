"""Periodic frame sampling: camera -> detection -> matching -> attendance."""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional, Tuple

from apscheduler.schedulers import SchedulerNotRunningError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from logging_config import recognition_logger
from core.attendance.tracker import AttendanceTracker
from core.recognition.backend import RecognitionBackend
from core.recognition.matcher import FaceMatcher
from core.vision.pipeline import VisionPipeline, scale_detections

SAMPLING_JOB_ID = "attendance-sampling"


@dataclass
class LoopStats:
    processed: int = 0
    skipped_busy: int = 0
    skipped_idle: int = 0
    failed: int = 0
    last_error: Optional[str] = None
    last_tick_at: Optional[datetime] = None

    def to_dict(self):
        data = asdict(self)
        data['last_tick_at'] = self.last_tick_at.isoformat() if self.last_tick_at else None
        return data


class SamplingLoop:
    """Cancellable fixed-rate sampling task.

    At most one detection pass runs at a time: a tick that fires while the
    previous one is still working is dropped, never queued. Once stopped the
    loop cannot be started again.
    """

    def __init__(
        self,
        *,
        stream,
        pipeline: VisionPipeline,
        backend: RecognitionBackend,
        matcher: FaceMatcher,
        tracker: AttendanceTracker,
        display_size: Optional[Tuple[int, int]] = None,
        interval_ms: int = 200,
        stop_timeout: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.stream = stream
        self.pipeline = pipeline
        self.backend = backend
        self.matcher = matcher
        self.tracker = tracker
        self.display_size = display_size
        self.interval_ms = max(1, int(interval_ms))
        self.stop_timeout = stop_timeout
        self._logger = logger or logging.getLogger(__name__)

        self._busy = threading.Lock()
        self._tick_ident: Optional[int] = None
        self._cancelled = threading.Event()
        self._scheduler: Optional[BackgroundScheduler] = None
        self._stats = LoopStats()
        self._stats_lock = threading.Lock()
        self._latest_jpeg: Optional[bytes] = None

    # ------------------------------------------------------------------
    # Lifecycle
    def start(self) -> None:
        if self._cancelled.is_set():
            raise RuntimeError("Sampling loop was stopped and cannot be restarted")
        if self._scheduler is not None:
            return

        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_ms / 1000.0),
            id=SAMPLING_JOB_ID,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(),
        )
        scheduler.start()
        self._scheduler = scheduler
        self._logger.info("[Sampling] ✅ Loop started (every %d ms)", self.interval_ms)

    def stop(self) -> None:
        """Cancel the job and wait for an in-flight pass to finish.

        Callers may release the camera once this returns. When called from
        inside a tick (same thread) it does not wait.
        """
        self._cancelled.set()
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            try:
                scheduler.remove_all_jobs()
                scheduler.shutdown(wait=False)
            except SchedulerNotRunningError:
                pass

        if self._tick_ident != threading.get_ident():
            if self._busy.acquire(timeout=self.stop_timeout):
                self._busy.release()
            else:
                self._logger.warning(
                    "[Sampling] ⚠️ Detection pass still running after %.1fs", self.stop_timeout
                )
        if scheduler is not None:
            self._logger.info("[Sampling] Loop stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None and not self._cancelled.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    # ------------------------------------------------------------------
    # Tick
    def tick(self) -> bool:
        """Run one sampling pass; returns True when a frame was processed."""
        if self._cancelled.is_set():
            return False
        if not self._busy.acquire(blocking=False):
            with self._stats_lock:
                self._stats.skipped_busy += 1
            self._logger.debug("[Sampling] Previous pass still running, tick skipped")
            return False

        self._tick_ident = threading.get_ident()
        try:
            if self._cancelled.is_set():
                return False
            if not self.stream.playing:
                with self._stats_lock:
                    self._stats.skipped_idle += 1
                return False
            return self._process_frame()
        except Exception as exc:
            with self._stats_lock:
                self._stats.failed += 1
                self._stats.last_error = f"{type(exc).__name__}: {exc}"
            recognition_logger.log_recognition_error(f"{type(exc).__name__}: {exc}")
            return False
        finally:
            self._tick_ident = None
            self._busy.release()

    def _process_frame(self) -> bool:
        frame = self.pipeline.next_frame()
        detections = self.backend.detect_all(frame.detect_rgb)
        recognition_logger.log_faces_detected(len(detections), frame.size)

        display_size = self.display_size or frame.size
        resized = scale_detections(detections, frame.detect_size, display_size)
        results = [self.matcher.find_best_match(d.embedding) for d in resized]

        # Bị hủy trong lúc đang nhận diện: bỏ kết quả
        if self._cancelled.is_set():
            return False

        for result in results:
            if self._cancelled.is_set():
                return False
            recognition_logger.log_face_matched(result.label, result.distance)
            self.tracker.apply(result)

        annotated = VisionPipeline.annotate(frame.bgr, resized, results, display_size)
        jpeg = VisionPipeline.encode_jpeg(annotated)
        with self._stats_lock:
            if jpeg is not None:
                self._latest_jpeg = jpeg
            self._stats.processed += 1
            self._stats.last_tick_at = frame.timestamp
        return True

    # ------------------------------------------------------------------
    def latest_jpeg(self) -> Optional[bytes]:
        with self._stats_lock:
            return self._latest_jpeg

    def stats(self) -> LoopStats:
        with self._stats_lock:
            return LoopStats(**asdict(self._stats))
