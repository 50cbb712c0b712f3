"""DeepFace-based recognition backend.

Embeddings come from ``DeepFace.represent``. Distances in these spaces are
much larger than dlib's, so FACE_DISTANCE_THRESHOLD has to be tuned for the
chosen model (Facenet512 Euclidean is around 23).
"""

import logging
from typing import Any, Dict, List, Optional

import cv2
import numpy as np

from core.recognition.backend import (
    BoundingBox,
    Detection,
    RecognitionBackend,
    RecognitionError,
    largest_face_index,
)

logger = logging.getLogger(__name__)


def _facial_area_to_box(rep: Dict[str, Any]) -> BoundingBox:
    area = rep.get("facial_area") or {}
    return BoundingBox(
        x=float(area.get("x", 0)),
        y=float(area.get("y", 0)),
        width=float(area.get("w", 0)),
        height=float(area.get("h", 0)),
    )


class DeepFaceBackend(RecognitionBackend):
    name = "deepface"

    def __init__(self, model_name: str = "Facenet512", detector_backend: str = "opencv"):
        self.model_name = model_name
        self.detector_backend = detector_backend
        self._deepface = None

    def load_models(self) -> bool:
        try:
            from deepface import DeepFace
        except ImportError as exc:
            logger.error("[DeepFace] ❌ DeepFace not available: %s", exc)
            return False
        try:
            DeepFace.build_model(self.model_name)
        except Exception as exc:
            logger.error("[DeepFace] ❌ Cannot build model %s: %s", self.model_name, exc)
            return False
        self._deepface = DeepFace
        logger.info("[DeepFace] ✅ Model %s ready (detector=%s)", self.model_name, self.detector_backend)
        return True

    def is_ready(self) -> bool:
        return self._deepface is not None

    def _represent(self, image: np.ndarray, enforce_detection: bool) -> List[Dict[str, Any]]:
        if self._deepface is None:
            raise RecognitionError("DeepFace model is not loaded")
        # DeepFace làm việc với ảnh BGR
        bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        return self._deepface.represent(
            img_path=bgr,
            model_name=self.model_name,
            detector_backend=self.detector_backend,
            enforce_detection=enforce_detection,
        )

    def embed(self, image: np.ndarray) -> Optional[np.ndarray]:
        try:
            reps = self._represent(image, enforce_detection=True)
        except ValueError:
            # DeepFace báo "Face could not be detected" bằng ValueError
            return None
        if not reps:
            return None
        idx = largest_face_index([_facial_area_to_box(rep) for rep in reps])
        return np.asarray(reps[idx]["embedding"], dtype=np.float64)

    def detect_all(self, image: np.ndarray) -> List[Detection]:
        reps = self._represent(image, enforce_detection=False)
        detections = []
        for rep in reps:
            # enforce_detection=False trả về cả ảnh với face_confidence = 0 khi không có mặt
            if float(rep.get("face_confidence") or 0.0) <= 0.0:
                continue
            detections.append(Detection(
                box=_facial_area_to_box(rep),
                embedding=np.asarray(rep["embedding"], dtype=np.float64),
            ))
        return detections
