"""
Backend nhận diện dùng thư viện face_recognition (dlib).

128-d embeddings compared by Euclidean distance; 0.6 is the library's own
default tolerance, which is why it is the default matching threshold.
"""

import logging
from typing import List, Optional

import numpy as np

from core.recognition.backend import (
    BoundingBox,
    Detection,
    RecognitionBackend,
    RecognitionError,
    largest_face_index,
)

logger = logging.getLogger(__name__)


def _location_to_box(location) -> BoundingBox:
    top, right, bottom, left = location
    return BoundingBox(x=left, y=top, width=right - left, height=bottom - top)


class FaceRecognitionBackend(RecognitionBackend):
    name = "face_recognition"

    def __init__(self, detection_model: str = 'hog', upsample_times: int = 1, num_jitters: int = 1):
        """
        Args:
            detection_model: 'hog' (CPU, nhanh) hoặc 'cnn' (chính xác hơn, cần GPU)
            upsample_times: Số lần phóng ảnh khi tìm khuôn mặt nhỏ
            num_jitters: Số lần lấy mẫu lại khi tính embedding ảnh mẫu
        """
        self.detection_model = detection_model
        self.upsample_times = upsample_times
        self.num_jitters = num_jitters
        self._lib = None

    def load_models(self) -> bool:
        # Tránh import nặng (dlib) cho tới khi thật sự cần
        try:
            import face_recognition
        except ImportError as exc:
            logger.error("[FaceRecognition] ❌ face_recognition not installed: %s", exc)
            return False
        self._lib = face_recognition
        logger.info("[FaceRecognition] ✅ Models ready (detector=%s)", self.detection_model)
        return True

    def is_ready(self) -> bool:
        return self._lib is not None

    def _require_lib(self):
        if self._lib is None:
            raise RecognitionError("face_recognition models are not loaded")
        return self._lib

    def embed(self, image: np.ndarray) -> Optional[np.ndarray]:
        lib = self._require_lib()
        locations = lib.face_locations(image, self.upsample_times, self.detection_model)
        if not locations:
            return None
        idx = largest_face_index([_location_to_box(loc) for loc in locations])
        encodings = lib.face_encodings(
            image,
            known_face_locations=[locations[idx]],
            num_jitters=self.num_jitters,
        )
        if not encodings:
            return None
        return np.asarray(encodings[0], dtype=np.float64)

    def detect_all(self, image: np.ndarray) -> List[Detection]:
        lib = self._require_lib()
        locations = lib.face_locations(image, self.upsample_times, self.detection_model)
        if not locations:
            return []
        encodings = lib.face_encodings(image, known_face_locations=locations)
        return [
            Detection(box=_location_to_box(loc), embedding=np.asarray(enc, dtype=np.float64))
            for loc, enc in zip(locations, encodings)
        ]
