"""Camera device management with reusable state."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Raised when camera operations fail."""


class CameraProvider(Protocol):
    """Abstraction for objects that can supply cv2.VideoCapture."""

    def open(self, index: int) -> cv2.VideoCapture:
        ...


class DefaultCameraProvider:
    """Real provider that uses OpenCV to create VideoCapture objects."""

    def open(self, index: int) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(index)
        if not capture or not capture.isOpened():
            raise CameraError(f"Cannot open camera index {index}")
        return capture


@dataclass
class CameraConfig:
    index: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    warmup_frames: int = 3
    buffer_size: Optional[int] = 2


class CameraManager:
    """Owns the VideoCapture handle and exposes safe read operations."""

    def __init__(
        self,
        config: Optional[CameraConfig] = None,
        provider: Optional[CameraProvider] = None,
    ):
        self.config = config or CameraConfig()
        self.provider = provider or DefaultCameraProvider()
        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_size: Optional[Tuple[int, int]] = None

    def is_open(self) -> bool:
        capture = self._capture
        return bool(capture is not None and capture.isOpened())

    def start(self) -> cv2.VideoCapture:
        if self.is_open():
            return self._capture

        capture = self.provider.open(self.config.index)
        self._configure_capture(capture)
        self._capture = capture
        return capture

    def _configure_capture(self, capture: cv2.VideoCapture) -> None:
        try:
            if self.config.width:
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            if self.config.height:
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            if self.config.buffer_size is not None and hasattr(cv2, "CAP_PROP_BUFFERSIZE"):
                capture.set(cv2.CAP_PROP_BUFFERSIZE, self.config.buffer_size)

            actual_w = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_h = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            if actual_w > 0 and actual_h > 0:
                self._frame_size = (actual_w, actual_h)
            logger.info(
                "[Camera] Ready: %sx%s @ %.2f fps",
                actual_w,
                actual_h,
                capture.get(cv2.CAP_PROP_FPS) or 0,
            )

            warmup = max(0, self.config.warmup_frames)
            if warmup:
                logger.debug("[Camera] Warming up (%s frames)", warmup)
                success = 0
                for _ in range(warmup):
                    ret, _frame = capture.read()
                    if ret:
                        success += 1
                    time.sleep(0.05)
                logger.debug("[Camera] Warmup frames ok=%s/%s", success, warmup)
        except cv2.error as exc:
            logger.warning("[Camera] Unable to configure camera: %s", exc)

    def stop(self) -> None:
        capture = self._capture
        self._capture = None
        if capture is not None:
            capture.release()
            logger.info("[Camera] Released camera index %s", self.config.index)

    def read(self) -> np.ndarray:
        """Đọc một khung hình BGR"""
        capture = self._capture
        if capture is None or not capture.isOpened():
            raise CameraError("Camera is not running")
        ret, frame = capture.read()
        if not ret or frame is None:
            raise CameraError("Unable to read frame from camera")
        self._frame_size = (int(frame.shape[1]), int(frame.shape[0]))
        return frame

    def frame_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the camera output once known."""
        return self._frame_size
