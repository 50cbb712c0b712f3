"""Vision pipeline that prepares frames for detection and draws results."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from core.recognition.backend import Detection
from core.recognition.matcher import MatchResult

Size = Tuple[int, int]

BOX_COLOR_KNOWN = (0, 200, 0)
BOX_COLOR_UNKNOWN = (0, 0, 220)


@dataclass
class VisionFrame:
    frame_id: str
    timestamp: datetime
    bgr: np.ndarray
    detect_rgb: np.ndarray

    @property
    def size(self) -> Size:
        return int(self.bgr.shape[1]), int(self.bgr.shape[0])

    @property
    def detect_size(self) -> Size:
        return int(self.detect_rgb.shape[1]), int(self.detect_rgb.shape[0])


def scale_detections(detections: Sequence[Detection], source: Size, target: Size) -> List[Detection]:
    """Map boxes from ``source`` (w, h) coordinates to ``target`` (w, h)."""
    src_w, src_h = source
    dst_w, dst_h = target
    if src_w <= 0 or src_h <= 0:
        return list(detections)
    scale_x = dst_w / float(src_w)
    scale_y = dst_h / float(src_h)
    return [Detection(d.box.scaled(scale_x, scale_y), d.embedding) for d in detections]


class VisionPipeline:
    """Reads frames from a stream and produces detection-ready images."""

    def __init__(self, stream, detection_scale: float = 0.5):
        self.stream = stream
        self.detection_scale = detection_scale if 0 < detection_scale <= 1 else 1.0
        self.frame_counter = 0

    def _next_id(self) -> str:
        self.frame_counter += 1
        return f"frame-{self.frame_counter}"

    def next_frame(self) -> VisionFrame:
        frame = self.stream.read()
        if self.detection_scale < 1.0:
            # Resize small for speed
            small = cv2.resize(frame, (0, 0), fx=self.detection_scale, fy=self.detection_scale)
        else:
            small = frame
        rgb = cv2.cvtColor(small, cv2.COLOR_BGR2RGB)
        return VisionFrame(
            frame_id=self._next_id(),
            timestamp=datetime.now(),
            bgr=frame,
            detect_rgb=rgb,
        )

    @staticmethod
    def annotate(
        frame: np.ndarray,
        detections: Sequence[Detection],
        results: Sequence[MatchResult],
        display_size: Optional[Size] = None,
    ) -> np.ndarray:
        """Vẽ khung và nhãn lên bản sao khung hình (kích thước hiển thị)."""
        if display_size and (frame.shape[1], frame.shape[0]) != tuple(display_size):
            canvas = cv2.resize(frame, tuple(display_size))
        else:
            canvas = frame.copy()

        font = cv2.FONT_HERSHEY_SIMPLEX
        for detection, result in zip(detections, results):
            x1, y1, x2, y2 = detection.box.as_int_rect()
            color = BOX_COLOR_UNKNOWN if result.is_unknown else BOX_COLOR_KNOWN
            cv2.rectangle(canvas, (x1, y1), (x2, y2), color, 2)
            label = str(result)
            (text_w, text_h), _ = cv2.getTextSize(label, font, 0.5, 1)
            top = max(0, y2)
            cv2.rectangle(canvas, (x1, top), (x1 + text_w + 6, top + text_h + 8), color, cv2.FILLED)
            cv2.putText(canvas, label, (x1 + 3, top + text_h + 3), font, 0.5, (255, 255, 255), 1, cv2.LINE_AA)
        return canvas

    @staticmethod
    def encode_jpeg(frame: np.ndarray, quality: int = 85) -> Optional[bytes]:
        ret, buf = cv2.imencode('.jpg', frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        if not ret:
            return None
        return buf.tobytes()

    @staticmethod
    def placeholder(message: str = "Camera disabled", size: Size = (640, 480)) -> Optional[bytes]:
        w, h = size
        img = np.zeros((h, w, 3), dtype=np.uint8)
        img[:] = (30, 30, 30)
        font = cv2.FONT_HERSHEY_SIMPLEX
        scale = 0.8
        thickness = 2
        text_size, _ = cv2.getTextSize(message, font, scale, thickness)
        text_w, text_h = text_size
        x = max(10, (w - text_w) // 2)
        y = max(30, (h - text_h) // 2)
        cv2.putText(img, message, (x, y), font, scale, (200, 200, 200), thickness, cv2.LINE_AA)
        return VisionPipeline.encode_jpeg(img)
