"""Recognition backend abstractions.

The face detection / embedding library is an external capability. Everything
the attendance pipeline needs from it goes through :class:`RecognitionBackend`
so matching and attendance logic can run against a stub in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np


class RecognitionError(RuntimeError):
    """Raised when a recognition backend cannot complete a call."""


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def scaled(self, scale_x: float, scale_y: float) -> "BoundingBox":
        return BoundingBox(
            x=self.x * scale_x,
            y=self.y * scale_y,
            width=self.width * scale_x,
            height=self.height * scale_y,
        )

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def as_int_rect(self) -> Tuple[int, int, int, int]:
        """(x1, y1, x2, y2) rounded for drawing."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.x + self.width)),
            int(round(self.y + self.height)),
        )


@dataclass(frozen=True)
class Detection:
    box: BoundingBox
    embedding: np.ndarray


@dataclass(frozen=True)
class LabeledEmbedding:
    label: str
    embedding: np.ndarray

    def __post_init__(self) -> None:
        vector = np.array(self.embedding, dtype=np.float64).ravel()
        vector.setflags(write=False)
        object.__setattr__(self, "embedding", vector)


class RecognitionBackend:
    """Protocol-ish base class for duck-typed backends.

    Images are RGB ``uint8`` arrays of shape (H, W, 3).
    """

    name: str = "backend"

    def load_models(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def embed(self, image: np.ndarray) -> Optional[np.ndarray]:  # pragma: no cover - interface
        """Embedding of the most prominent face, or None when no face is found."""
        raise NotImplementedError

    def detect_all(self, image: np.ndarray) -> List[Detection]:  # pragma: no cover - interface
        raise NotImplementedError

    def is_ready(self) -> bool:
        return True


def largest_face_index(boxes: List[BoundingBox]) -> Optional[int]:
    if not boxes:
        return None
    return max(range(len(boxes)), key=lambda i: boxes[i].area)
